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

from enum import IntEnum, unique


@unique
class SparseOpCode(IntEnum):
    DENSE_TO_SPARSE_NNZ = 1
    DENSE_TO_CSR = 2
    DENSE_TO_CSC = 3
    DENSE_TO_COO = 4
    POS_TO_OFFSETS = 11

    CSR_TO_DENSE = 5
    CSC_TO_DENSE = 6
    COO_TO_DENSE = 7

    SPVV = 8

    EXPAND_POS_TO_COORDINATES = 9
    SDDMM = 10


@unique
class Format(IntEnum):
    CSR = 1
    CSC = 2
    COO = 3


@unique
class Order(IntEnum):
    ROW = 1
    COL = 2


@unique
class Operation(IntEnum):
    NON_TRANSPOSE = 0
    TRANSPOSE = 1
    CONJUGATE_TRANSPOSE = 2


@unique
class IndexBase(IntEnum):
    ZERO = 0
    ONE = 1


@unique
class ScalarLocation(IntEnum):
    HOST = 0
    DEVICE = 1


@unique
class DenseToSparseAlg(IntEnum):
    DEFAULT = 0


@unique
class SparseToDenseAlg(IntEnum):
    DEFAULT = 0


@unique
class SDDMMAlg(IntEnum):
    DEFAULT = 0


# Stages a scratch buffer can be stamped with. SIZED is the implicit stage
# of a freshly allocated buffer that no stage has consumed yet.
@unique
class Stage(IntEnum):
    SIZED = 0
    ANALYZED = 1
    CONVERTED = 2
    PREPROCESSED = 3
    COMPUTED = 4


@unique
class Status(IntEnum):
    SUCCESS = 0
    INVALID_VALUE = 3
    NOT_SUPPORTED = 10
    INSUFFICIENT_RESOURCES = 11
    EXECUTION_FAILED = 6


# Operation families, as seen by the type-combination validator.
@unique
class Routine(IntEnum):
    DENSE_TO_SPARSE = 1
    SPARSE_TO_DENSE = 2
    SPVV = 3
    SDDMM = 4
