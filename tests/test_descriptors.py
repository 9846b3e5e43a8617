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

import dsparse
from dsparse import (
    CooMatrix,
    CscMatrix,
    CsrMatrix,
    DenseMatrix,
    DeviceValue,
    HostValue,
    Order,
    SparseVector,
    Stage,
    runtime,
)
from dsparse.scratch import (
    ScratchLayout,
    StageRecord,
    check_buffer,
    require_stage,
    stamp,
)


def test_dense_leading_dimension():
    ctx = runtime.create_context()
    data = ctx.empty(12, np.float64)
    DenseMatrix(3, 4, 4, data)
    DenseMatrix(3, 4, 3, data, order=Order.COL)
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(3, 4, 3, data)
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(3, 4, 2, data, order=Order.COL)
    # Too little memory for the padded layout.
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(3, 4, 5, data)


def test_dense_view_honors_layout():
    ctx = runtime.create_context()
    a = np.arange(6.0).reshape(2, 3)
    row = dsparse.from_numpy(a, ctx=ctx)
    col = dsparse.from_numpy(a, ctx=ctx, order=Order.COL)
    assert np.array_equal(row.todense(), a)
    assert np.array_equal(col.todense(), a)
    assert np.array_equal(ctx.to_host(col.data), [0, 3, 1, 4, 2, 5])


def test_dense_rejects_bad_dims():
    ctx = runtime.create_context()
    data = ctx.empty(4, np.float32)
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(-1, 2, 2, data)
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(2, 2.0, 2, data)
    with pytest.raises(dsparse.InvalidArgumentError):
        DenseMatrix(2, 2, 2, np.zeros(4))


def test_csr_descriptor():
    ctx = runtime.create_context()
    offsets = ctx.to_device(np.array([0, 1, 3], dtype=np.int32))
    A = CsrMatrix(2, 3, row_offsets=offsets, value_type=np.float32)
    assert A.get_size() == (2, 3, 0)
    assert A.dtype == np.float32
    assert A.context is ctx
    version = A.pattern_version
    A.nnz = 3
    A.set_pointers(
        offsets,
        ctx.to_device(np.array([2, 0, 1], dtype=np.int32)),
        ctx.to_device(np.array([1.0, 2.0, 3.0], dtype=np.float32)),
    )
    assert A.pattern_version == version + 1
    assert np.array_equal(
        A.to_scipy().todense(), [[0.0, 0.0, 1.0], [2.0, 3.0, 0.0]]
    )
    A.set_values(ctx.to_device(np.ones(3, dtype=np.float32)))
    assert A.pattern_version == version + 1


def test_descriptor_validation():
    ctx = runtime.create_context()
    with pytest.raises(dsparse.NotSupportedError):
        CsrMatrix(2, 2, index_type=np.int16, value_type=np.float32)
    with pytest.raises(dsparse.InvalidArgumentError):
        CsrMatrix(2, 2)
    with pytest.raises(dsparse.InvalidArgumentError):
        # Offsets need rows + 1 entries.
        CsrMatrix(
            2, 2, row_offsets=ctx.empty(2, np.int32), value_type=np.float32
        )
    with pytest.raises(dsparse.InvalidArgumentError):
        CscMatrix(
            2, 2, col_offsets=ctx.empty(3, np.int64), value_type=np.float32
        )
    with pytest.raises(dsparse.InvalidArgumentError):
        CooMatrix(
            2,
            2,
            nnz=2,
            row_indices=ctx.empty(2, np.int32),
            col_indices=ctx.empty(2, np.int32),
            values=ctx.empty(1, np.float32),
        )


def test_coo_to_scipy_sums_duplicates():
    ctx = runtime.create_context()
    A = CooMatrix(
        2,
        2,
        nnz=3,
        row_indices=ctx.to_device(np.array([0, 0, 1], dtype=np.int32)),
        col_indices=ctx.to_device(np.array([1, 1, 0], dtype=np.int32)),
        values=ctx.to_device(np.array([1.0, 2.0, 5.0])),
    )
    assert np.array_equal(A.todense(), [[0.0, 3.0], [5.0, 0.0]])


def test_sparse_vector():
    ctx = runtime.create_context()
    x = dsparse.sparse_vector(5, [4, 1], np.array([2.0, 3.0]), ctx=ctx)
    assert np.array_equal(x.todense(), [0.0, 3.0, 0.0, 0.0, 2.0])
    with pytest.raises(dsparse.InvalidArgumentError):
        SparseVector(
            1, 2, ctx.empty(2, np.int32), ctx.empty(2, np.float64)
        )
    with pytest.raises(dsparse.InvalidArgumentError):
        SparseVector(
            4,
            1,
            ctx.empty(1, np.int32),
            runtime.create_context().empty(1, np.float64),
        )


def test_scalars():
    ctx = runtime.create_context()
    host = HostValue(3, np.float32)
    assert host.dtype == np.float32 and host.get() == 3.0
    device = DeviceValue.create(ctx, 2.5)
    assert device.context is ctx
    assert device.get() == 2.5
    with pytest.raises(dsparse.InvalidArgumentError):
        DeviceValue(ctx.empty(0, np.float32))


def test_scratch_layout(monkeypatch):
    monkeypatch.setenv("DSPARSE_SCRATCH_ALIGNMENT", "16")
    layout = (
        ScratchLayout()
        .add("a", np.int64, 3)
        .add("b", np.float32, 0)
        .add("c", np.complex128, 1)
    )
    assert layout.nbytes == 32 + 16
    ctx = runtime.create_context()
    buffer = ctx.allocate(layout.nbytes)
    views = layout.views(buffer)
    assert views["a"].shape == (3,) and views["a"].dtype == np.int64
    assert views["b"].shape == (0,)
    views["c"][0] = 1 + 2j
    assert ctx.to_host(buffer)[32:].view(np.complex128)[0] == 1 + 2j


def test_check_buffer():
    ctx = runtime.create_context()
    check_buffer(ctx, None, 0)
    check_buffer(ctx, ctx.allocate(8), 8)
    with pytest.raises(dsparse.InvalidArgumentError):
        check_buffer(ctx, None, 1)
    with pytest.raises(dsparse.InsufficientResourcesError):
        check_buffer(ctx, ctx.allocate(7), 8)
    with pytest.raises(dsparse.InvalidArgumentError):
        check_buffer(ctx, ctx.empty(8, np.float64), 8)
    with pytest.raises(dsparse.InvalidArgumentError):
        check_buffer(ctx, runtime.create_context().allocate(8), 8)


def test_stage_records():
    ctx = runtime.create_context()
    buffer = ctx.allocate(8)
    with pytest.raises(dsparse.InvalidStateError):
        require_stage(buffer, "sddmm", (Stage.PREPROCESSED,), ("x",))
    stamp(buffer, "sddmm", Stage.PREPROCESSED, ("x",))
    assert buffer.tag == StageRecord("sddmm", Stage.PREPROCESSED, ("x",))
    require_stage(buffer, "sddmm", (Stage.PREPROCESSED,), ("x",))
    with pytest.raises(dsparse.InvalidStateError):
        require_stage(buffer, "dense_to_sparse", (Stage.ANALYZED,), ("x",))
    with pytest.raises(dsparse.InvalidArgumentError):
        require_stage(buffer, "sddmm", (Stage.PREPROCESSED,), ("y",))
    with pytest.raises(dsparse.InvalidStateError):
        require_stage(buffer, "sddmm", (Stage.COMPUTED,), ("x",))


if __name__ == "__main__":
    import sys

    sys.exit(pytest.main(sys.argv))
