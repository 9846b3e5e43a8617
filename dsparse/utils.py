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

import traceback
from enum import IntEnum

import numpy

from .errors import InvalidArgumentError
from .runtime import DeviceArray


# find_last_user_stacklevel gets the last stack frame index
# within dsparse.
def find_last_user_stacklevel() -> int:
    stacklevel = 1
    for frame, _ in traceback.walk_stack(None):
        if not frame.f_globals["__name__"].startswith("dsparse"):
            break
        stacklevel += 1
    return stacklevel


# align_up rounds a byte count up to the next multiple of alignment.
def align_up(nbytes: int, alignment: int) -> int:
    return (nbytes + alignment - 1) // alignment * alignment


# as_dtype normalizes anything numpy understands as a type into a dtype,
# reporting garbage as an argument error rather than a TypeError.
def as_dtype(ty, name="dtype") -> numpy.dtype:
    try:
        return numpy.dtype(ty)
    except TypeError as e:
        raise InvalidArgumentError(f"{name} {ty!r} is not a data type") from e


# as_enum converts a raw value into a member of an IntEnum, reporting
# unknown values as argument errors.
def as_enum(enum_cls, value, name):
    try:
        return enum_cls(value)
    except ValueError as e:
        raise InvalidArgumentError(
            f"{name} must be one of {[m.name for m in enum_cls]}, "
            f"got {value!r}"
        ) from e


# check_dim validates a single non-negative extent.
def check_dim(value, name) -> int:
    if isinstance(value, (bool, numpy.bool_)) or not isinstance(
        value, (int, numpy.integer)
    ):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {value}")
    return int(value)


# check_not_none is the null-pointer check every entry point starts with.
def check_not_none(**kwargs):
    for name, value in kwargs.items():
        if value is None:
            raise InvalidArgumentError(f"{name} must not be None")


# check_device_array validates an attached array: it must be device memory
# of the expected type holding at least min_size elements.
def check_device_array(arr, name, dtype=None, min_size=0):
    if not isinstance(arr, DeviceArray):
        raise InvalidArgumentError(
            f"{name} must be a DeviceArray, got {type(arr).__name__}"
        )
    if dtype is not None and arr.dtype != dtype:
        raise InvalidArgumentError(
            f"{name} has type {arr.dtype}, expected {dtype}"
        )
    if arr.size < min_size:
        raise InvalidArgumentError(
            f"{name} holds {arr.size} elements, at least {min_size} required"
        )
    return arr


# check_same_context makes sure every operand that has memory attached lives
# on the context the operation is issued against.
def check_same_context(ctx, **operands):
    for name, operand in operands.items():
        context = getattr(operand, "context", None)
        if context is not None and context is not ctx:
            raise InvalidArgumentError(
                f"{name} lives on {context!r}, but the operation was "
                f"issued on {ctx!r}"
            )


# describe is used to build the operand signatures stamped on scratch
# buffers; enums are reduced to their names so signatures print nicely.
def describe(*values):
    return tuple(v.name if isinstance(v, IntEnum) else v for v in values)
