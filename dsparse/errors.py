# Copyright 2022 NVIDIA Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from .config import Status


# Each error kind also derives from the matching builtin exception, so
# callers can keep catching ValueError or NotImplementedError.
class SparseError(Exception):
    status = None


class InvalidArgumentError(SparseError, ValueError):
    status = Status.INVALID_VALUE


# Raised when a stage is issued out of order, e.g. convert before analysis.
class InvalidStateError(InvalidArgumentError):
    pass


class NotSupportedError(SparseError, NotImplementedError):
    status = Status.NOT_SUPPORTED


class InsufficientResourcesError(SparseError, MemoryError):
    status = Status.INSUFFICIENT_RESOURCES


# Device-side faults. These only ever surface from a synchronization point.
class ComputeFailureError(SparseError, RuntimeError):
    status = Status.EXECUTION_FAILED
