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

"""Dense to sparse conversion.

The conversion runs in three stages that share one caller-owned scratch
buffer:

1. ``dense_to_sparse_buffer_size`` reports how many bytes of scratch the
   other two stages need.
2. ``dense_to_sparse_analysis`` counts the non-zeros of every row (CSR, COO)
   or column (CSC) into the scratch, writes the offsets array of compressed
   formats and sets ``B.nnz``. The caller then attaches index and value
   arrays of that size to ``B``.
3. ``dense_to_sparse_convert`` writes the indices and values.

An entry is stored when it compares unequal to zero, so negative zeros are
dropped and NaNs are kept. Within a row (column for CSC) entries are
written in ascending column (row) order.
"""

import numpy

from .base import SparseMatrixBase
from .config import (
    DenseToSparseAlg,
    Format,
    Routine,
    SparseOpCode,
    Stage,
)
from .dense import DenseMatrix
from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    NotSupportedError,
)
from .scratch import ScratchLayout, check_buffer, require_stage, stamp
from .types import nnz_ty
from .utils import as_enum, check_not_none, check_same_context, describe
from .validate import require_supported

ROUTINE = "dense_to_sparse"

_CONVERT_KERNELS = {
    Format.CSR: SparseOpCode.DENSE_TO_CSR,
    Format.CSC: SparseOpCode.DENSE_TO_CSC,
    Format.COO: SparseOpCode.DENSE_TO_COO,
}


def _check_operands(ctx, A, B, alg):
    check_not_none(ctx=ctx, A=A, B=B)
    if not isinstance(A, DenseMatrix):
        raise InvalidArgumentError(
            f"A must be a DenseMatrix, got {type(A).__name__}"
        )
    if not isinstance(B, SparseMatrixBase):
        raise InvalidArgumentError(
            f"B must be a sparse matrix, got {type(B).__name__}"
        )
    if B.format not in _CONVERT_KERNELS:
        raise NotSupportedError(f"Cannot convert to {B.format!r}")
    alg = as_enum(DenseToSparseAlg, alg, "alg")
    if A.shape != B.shape:
        raise InvalidArgumentError(
            f"Shape mismatch: dense {A.shape} vs sparse {B.shape}"
        )
    check_same_context(ctx, A=A, B=B)
    require_supported(Routine.DENSE_TO_SPARSE, (A.dtype, B.dtype))
    return alg


def _major_dim(B):
    return B.cols if B.format == Format.CSC else B.rows


def _layout(B):
    return ScratchLayout().add("pos", nnz_ty, _major_dim(B) + 1)


def _signature(A, B, alg):
    return describe(
        B.format,
        A.rows,
        A.cols,
        A.ld,
        A.order,
        A.dtype.str,
        B.index_type.str,
        B.index_base,
        B.nnz,
        alg,
    ) + (id(A.data), id(B), id(getattr(B, "offsets", None)))


def _write_offsets(ctx, B, pos):
    task = ctx.create_task(SparseOpCode.POS_TO_OFFSETS)
    task.add_input(pos)
    task.add_output(B.offsets.storage[: _major_dim(B) + 1])
    task.add_scalar_arg(int(B.index_base))
    return task.execute()


def dense_to_sparse_buffer_size(
    ctx, A, B, alg=DenseToSparseAlg.DEFAULT
) -> int:
    """Scratch bytes needed by the analysis and conversion of ``A`` into
    ``B``. Nothing is submitted.
    """
    _check_operands(ctx, A, B, alg)
    return _layout(B).nbytes


def dense_to_sparse_analysis(ctx, A, B, alg, buffer):
    """Count the non-zeros of ``A`` and set ``B.nnz``.

    The offsets array of a CSR or CSC target must already be attached and
    is filled in here. Because ``nnz`` is host-side metadata, this stage
    waits for its own counting task before it returns.
    """
    alg = _check_operands(ctx, A, B, alg)
    layout = _layout(B)
    check_buffer(ctx, buffer, layout.nbytes)

    if B.format != Format.COO and B.offsets is None:
        raise InvalidArgumentError(
            f"{B.format.name} offsets must be attached before the analysis"
        )

    # The counts land in scratch only. B is not written until they have
    # been checked against its index type.
    views = layout.views(buffer)
    task = ctx.create_task(SparseOpCode.DENSE_TO_SPARSE_NNZ)
    task.add_input(A)
    task.add_output(views["pos"])
    task.add_scalar_arg(0 if B.format == Format.CSC else 1)
    event = task.execute()
    event.wait()

    nnz = int(views["pos"][-1])
    limit = int(numpy.iinfo(B.index_type).max)
    if nnz + int(B.index_base) > limit:
        raise InvalidArgumentError(
            f"{nnz} non-zeros do not fit index type {B.index_type}"
        )
    if B.format != Format.COO:
        event = _write_offsets(ctx, B, views["pos"])
    if nnz != B.nnz:
        B.nnz = nnz
        B.pattern_version += 1
    stamp(buffer, ROUTINE, Stage.ANALYZED, _signature(A, B, alg))
    return event


def dense_to_sparse_convert(ctx, A, B, alg, buffer):
    """Write the indices and values of ``B``.

    Requires a scratch buffer that went through the analysis of this exact
    ``A``/``B`` pair, and index and value arrays holding at least ``B.nnz``
    entries. Running the conversion again on the same buffer is allowed.
    """
    alg = _check_operands(ctx, A, B, alg)
    layout = _layout(B)
    check_buffer(ctx, buffer, layout.nbytes)
    require_stage(
        buffer,
        ROUTINE,
        (Stage.ANALYZED, Stage.CONVERTED),
        _signature(A, B, alg),
    )
    B.require_arrays("dense_to_sparse_convert")

    views = layout.views(buffer)
    # Offsets are rewritten from the analysis counts so that the indices
    # written below always agree with them.
    if B.format != Format.COO:
        _write_offsets(ctx, B, views["pos"])
    task = ctx.create_task(_CONVERT_KERNELS[B.format])
    task.add_input(A)
    task.add_input(views["pos"])
    if B.format == Format.COO:
        task.add_output(B.kernel_view("row_indices"))
        task.add_output(B.kernel_view("col_indices"))
    elif B.format == Format.CSR:
        task.add_output(B.kernel_view("col_indices"))
    else:
        task.add_output(B.kernel_view("row_indices"))
    task.add_output(B.kernel_view("values"))
    task.add_scalar_arg(int(B.index_base))
    event = task.execute()
    stamp(buffer, ROUTINE, Stage.CONVERTED, _signature(A, B, alg))
    return event


class DenseToSparse:
    """Object form of the three conversion stages.

    Holds the operands and tracks which stage ran last, so that calling
    ``convert`` before ``analysis`` fails without touching the buffer::

        op = DenseToSparse(ctx, A, B)
        buffer = ctx.allocate(op.buffer_size())
        op.analysis(buffer)
        B.set_pointers(B.row_offsets, ctx.empty(B.nnz, int32), ...)
        op.convert(buffer)
    """

    def __init__(self, ctx, A, B, alg=DenseToSparseAlg.DEFAULT):
        self.alg = _check_operands(ctx, A, B, alg)
        self.ctx = ctx
        self.A = A
        self.B = B
        self.state = None

    def buffer_size(self) -> int:
        nbytes = dense_to_sparse_buffer_size(
            self.ctx, self.A, self.B, self.alg
        )
        self.state = Stage.SIZED
        return nbytes

    def analysis(self, buffer):
        if self.state is None:
            raise InvalidStateError("buffer_size must be queried first")
        event = dense_to_sparse_analysis(
            self.ctx, self.A, self.B, self.alg, buffer
        )
        self.state = Stage.ANALYZED
        return event

    def convert(self, buffer):
        if self.state not in (Stage.ANALYZED, Stage.CONVERTED):
            raise InvalidStateError("analysis must run before convert")
        event = dense_to_sparse_convert(
            self.ctx, self.A, self.B, self.alg, buffer
        )
        self.state = Stage.CONVERTED
        return event
