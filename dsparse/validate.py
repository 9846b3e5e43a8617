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
"""Type-combination validation.

Every routine consults this table before anything is sized, allocated or
submitted, so that an unsupported combination of operand value types and
compute type fails immediately. Keys are::

    (routine, (operand value types...), compute type or None)

The operand order is the one the routine documents: ``(A, B)`` for the
conversions, ``(X, Y)`` for SpVV and ``(A, B, C)`` for SDDMM.
"""

from __future__ import annotations

from enum import IntEnum, unique
from typing import Optional, Sequence

import numpy

from .config import Routine
from .errors import NotSupportedError
from .types import (
    complex64,
    complex128,
    float16,
    float32,
    float64,
    int8,
    int32,
)
from .utils import as_dtype


@unique
class Support(IntEnum):
    UNSUPPORTED = 0
    UNIFORM = 1
    MIXED = 2


_CONVERSION_TYPES = (float16, float32, float64, complex64, complex128)
_SPVV_TYPES = (float32, float64, complex64, complex128)
_SDDMM_TYPES = (float16, float32, float64, complex64, complex128)


def _build_table():
    table = {}
    for ty in _CONVERSION_TYPES:
        table[(Routine.DENSE_TO_SPARSE, (ty, ty), None)] = Support.UNIFORM
        table[(Routine.SPARSE_TO_DENSE, (ty, ty), None)] = Support.UNIFORM

    for ty in _SPVV_TYPES:
        table[(Routine.SPVV, (ty, ty), ty)] = Support.UNIFORM
    table[(Routine.SPVV, (int8, int8), int32)] = Support.MIXED
    table[(Routine.SPVV, (int8, int8), float32)] = Support.MIXED
    table[(Routine.SPVV, (float16, float16), float32)] = Support.MIXED

    for ty in _SDDMM_TYPES:
        table[(Routine.SDDMM, (ty, ty, ty), ty)] = Support.UNIFORM
    table[(Routine.SDDMM, (float16, float16, float32), float32)] = (
        Support.MIXED
    )
    table[(Routine.SDDMM, (float16, float16, float16), float32)] = (
        Support.MIXED
    )
    return table


_TABLE = _build_table()


def lookup(
    routine: Routine,
    value_types: Sequence[numpy.dtype],
    compute_type: Optional[numpy.dtype] = None,
) -> Support:
    key = (
        Routine(routine),
        tuple(as_dtype(ty, "value type") for ty in value_types),
        None if compute_type is None else as_dtype(compute_type, "compute"),
    )
    return _TABLE.get(key, Support.UNSUPPORTED)


def require_supported(
    routine: Routine,
    value_types: Sequence[numpy.dtype],
    compute_type: Optional[numpy.dtype] = None,
) -> Support:
    support = lookup(routine, value_types, compute_type)
    if support == Support.UNSUPPORTED:
        types = ", ".join(str(as_dtype(ty)) for ty in value_types)
        msg = f"{Routine(routine).name} does not support value types ({types})"
        if compute_type is not None:
            msg += f" with compute type {as_dtype(compute_type)}"
        raise NotSupportedError(msg)
    return support


def supported_combinations(routine: Routine):
    """All (value types, compute type, support) rows of a routine."""
    return [
        (value_types, compute_type, support)
        for (r, value_types, compute_type), support in _TABLE.items()
        if r == routine
    ]
