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

import numpy as np
import pytest

from dsparse import (
    NotSupportedError,
    Routine,
    Support,
    lookup,
    require_supported,
    supported_combinations,
)

conversion_types = [
    np.float16,
    np.float32,
    np.float64,
    np.complex64,
    np.complex128,
]


@pytest.mark.parametrize(
    "routine", [Routine.DENSE_TO_SPARSE, Routine.SPARSE_TO_DENSE]
)
@pytest.mark.parametrize("dtype", conversion_types)
def test_conversions_uniform(routine, dtype):
    assert lookup(routine, (dtype, dtype)) == Support.UNIFORM


def test_conversions_reject_mixed_and_integer():
    assert lookup(Routine.DENSE_TO_SPARSE, (np.float32, np.float64)) == (
        Support.UNSUPPORTED
    )
    assert lookup(Routine.DENSE_TO_SPARSE, (np.int32, np.int32)) == (
        Support.UNSUPPORTED
    )
    # Conversions take no compute type.
    assert lookup(
        Routine.DENSE_TO_SPARSE, (np.float32, np.float32), np.float32
    ) == (Support.UNSUPPORTED)


@pytest.mark.parametrize(
    "value_types, compute_type, support",
    [
        ((np.float32, np.float32), np.float32, Support.UNIFORM),
        ((np.complex128, np.complex128), np.complex128, Support.UNIFORM),
        ((np.int8, np.int8), np.int32, Support.MIXED),
        ((np.int8, np.int8), np.float32, Support.MIXED),
        ((np.float16, np.float16), np.float32, Support.MIXED),
        ((np.float16, np.float16), np.float16, Support.UNSUPPORTED),
        ((np.int8, np.int8), np.int8, Support.UNSUPPORTED),
        ((np.float32, np.float64), np.float64, Support.UNSUPPORTED),
        ((np.float64, np.float64), np.float32, Support.UNSUPPORTED),
    ],
)
def test_spvv_table(value_types, compute_type, support):
    assert lookup(Routine.SPVV, value_types, compute_type) == support


@pytest.mark.parametrize(
    "value_types, compute_type, support",
    [
        ((np.float16,) * 3, np.float16, Support.UNIFORM),
        ((np.complex64,) * 3, np.complex64, Support.UNIFORM),
        ((np.float16, np.float16, np.float32), np.float32, Support.MIXED),
        ((np.float16, np.float16, np.float16), np.float32, Support.MIXED),
        ((np.float32, np.float32, np.float16), np.float32, Support(0)),
        ((np.float32, np.float32, np.float32), np.float64, Support(0)),
    ],
)
def test_sddmm_table(value_types, compute_type, support):
    assert lookup(Routine.SDDMM, value_types, compute_type) == support


def test_lookup_accepts_type_names():
    assert lookup(Routine.SPVV, ("float32", "float32"), "float32") == (
        Support.UNIFORM
    )


def test_require_supported():
    assert (
        require_supported(Routine.SPVV, (np.int8, np.int8), np.int32)
        == Support.MIXED
    )
    with pytest.raises(NotSupportedError, match="SPVV"):
        require_supported(Routine.SPVV, (np.int8, np.int8), np.int8)
    with pytest.raises(NotImplementedError):
        require_supported(Routine.SDDMM, (np.int32,) * 3, np.int32)


def test_supported_combinations():
    rows = supported_combinations(Routine.SPVV)
    assert len(rows) == 7
    assert ((np.dtype(np.int8),) * 2, np.dtype(np.int32), Support.MIXED) in (
        rows
    )
    assert len(supported_combinations(Routine.SDDMM)) == 7
    assert len(supported_combinations(Routine.DENSE_TO_SPARSE)) == 5


if __name__ == "__main__":
    import sys

    sys.exit(pytest.main(sys.argv))
