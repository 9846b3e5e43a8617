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

"""Sampled dense-dense matrix multiplication.

For every stored entry ``(i, j)`` of the sparse matrix ``C``::

    C[i, j] = alpha * dot(op(A)[i, :], op(B)[:, j]) + beta * C[i, j]

Entries ``C`` does not store are never computed, and the non-zero pattern
of ``C`` is never changed. When ``beta`` is zero the previous values of
``C`` are not read, so they may hold anything, NaNs included.

The preprocessing stage expands the pattern of ``C`` into explicit
coordinates in the scratch buffer. The computation can then be repeated
with new values of ``A``, ``B``, ``alpha``, ``beta`` and ``C`` as long as
the pattern of ``C`` stays the same; attaching new pattern arrays to ``C``
requires preprocessing again.
"""

import numpy

from .base import SparseMatrixBase
from .config import (
    Format,
    Operation,
    Routine,
    SDDMMAlg,
    SparseOpCode,
    Stage,
)
from .dense import DenseMatrix
from .errors import (
    InvalidArgumentError,
    InvalidStateError,
    NotSupportedError,
)
from .scalar import as_scalar, capture
from .scratch import ScratchLayout, check_buffer, require_stage, stamp
from .settings import settings
from .types import coord_ty
from .utils import (
    as_dtype,
    as_enum,
    check_not_none,
    check_same_context,
    describe,
)
from .validate import require_supported

ROUTINE = "sddmm"

_PATTERNS = {
    Format.CSR: ("row_offsets", "col_indices"),
    Format.CSC: ("col_offsets", "row_indices"),
    Format.COO: ("row_indices", "col_indices"),
}


def _check_op(op, name):
    op = as_enum(Operation, op, name)
    if op == Operation.CONJUGATE_TRANSPOSE:
        raise NotSupportedError(f"{name} CONJUGATE_TRANSPOSE is not supported")
    return op


def _op_shape(M, op):
    return M.shape if op == Operation.NON_TRANSPOSE else M.shape[::-1]


def _check_operands(
    ctx, op_a, op_b, alpha, A, B, beta, C, compute_type, alg
):
    check_not_none(
        ctx=ctx,
        alpha=alpha,
        A=A,
        B=B,
        beta=beta,
        C=C,
        compute_type=compute_type,
    )
    op_a = _check_op(op_a, "op_a")
    op_b = _check_op(op_b, "op_b")
    for name, M in (("A", A), ("B", B)):
        if not isinstance(M, DenseMatrix):
            raise InvalidArgumentError(
                f"{name} must be a DenseMatrix, got {type(M).__name__}"
            )
    if not isinstance(C, SparseMatrixBase) or C.format not in _PATTERNS:
        raise InvalidArgumentError(
            f"C must be a sparse matrix, got {type(C).__name__}"
        )
    alg = as_enum(SDDMMAlg, alg, "alg")

    m, k = _op_shape(A, op_a)
    kb, n = _op_shape(B, op_b)
    if k != kb or (m, n) != C.shape:
        raise InvalidArgumentError(
            f"Shape mismatch: op(A) is {m}x{k}, op(B) is {kb}x{n}, C is "
            f"{C.rows}x{C.cols}"
        )

    compute_type = as_dtype(compute_type, "compute_type")
    require_supported(
        Routine.SDDMM, (A.dtype, B.dtype, C.dtype), compute_type
    )
    alpha = as_scalar(alpha, "alpha")
    beta = as_scalar(beta, "beta")
    for name, s in (("alpha", alpha), ("beta", beta)):
        if not numpy.can_cast(s.dtype, compute_type, "same_kind"):
            raise InvalidArgumentError(
                f"{name} of type {s.dtype} cannot be used with compute "
                f"type {compute_type}"
            )
    check_same_context(ctx, A=A, B=B, C=C, alpha=alpha, beta=beta)
    C.require_arrays(ROUTINE)
    return op_a, op_b, alpha, beta, compute_type, alg


def _layout(C, compute_type):
    return (
        ScratchLayout()
        .add("rows", coord_ty, C.nnz)
        .add("cols", coord_ty, C.nnz)
        .add("dots", compute_type, C.nnz)
    )


def _signature(op_a, op_b, A, B, C, compute_type, alg):
    return describe(
        op_a,
        op_b,
        A.shape,
        A.ld,
        A.order,
        A.dtype.str,
        B.shape,
        B.ld,
        B.order,
        B.dtype.str,
        C.format,
        C.shape,
        C.nnz,
        C.index_type.str,
        C.index_base,
        C.dtype.str,
        compute_type.str,
        alg,
    ) + (id(C), C.pattern_version)


def sddmm_buffer_size(
    ctx,
    op_a,
    op_b,
    alpha,
    A,
    B,
    beta,
    C,
    compute_type,
    alg=SDDMMAlg.DEFAULT,
) -> int:
    """Scratch bytes needed by ``sddmm_preprocess`` and ``sddmm``."""
    checked = _check_operands(
        ctx, op_a, op_b, alpha, A, B, beta, C, compute_type, alg
    )
    return _layout(C, checked[4]).nbytes


def sddmm_preprocess(
    ctx,
    op_a,
    op_b,
    alpha,
    A,
    B,
    beta,
    C,
    compute_type,
    alg,
    buffer,
):
    """Expand the pattern of ``C`` into coordinates in ``buffer``.

    Values are neither read nor written.
    """
    op_a, op_b, _, _, compute_type, alg = _check_operands(
        ctx, op_a, op_b, alpha, A, B, beta, C, compute_type, alg
    )
    layout = _layout(C, compute_type)
    check_buffer(ctx, buffer, layout.nbytes)

    views = layout.views(buffer)
    task = ctx.create_task(SparseOpCode.EXPAND_POS_TO_COORDINATES)
    for name in _PATTERNS[C.format]:
        task.add_input(C.kernel_view(name))
    task.add_output(views["rows"])
    task.add_output(views["cols"])
    task.add_scalar_arg(C.format)
    task.add_scalar_arg(int(C.index_base))
    task.add_scalar_arg(C.nnz)
    event = task.execute()
    stamp(
        buffer,
        ROUTINE,
        Stage.PREPROCESSED,
        _signature(op_a, op_b, A, B, C, compute_type, alg),
    )
    return event


def sddmm(
    ctx,
    op_a,
    op_b,
    alpha,
    A,
    B,
    beta,
    C,
    compute_type,
    alg,
    buffer,
):
    """Submit the sampled product into the values of ``C``.

    Host ``alpha`` and ``beta`` are read when the call is made, device ones
    when the computation runs on the stream.
    """
    op_a, op_b, alpha, beta, compute_type, alg = _check_operands(
        ctx, op_a, op_b, alpha, A, B, beta, C, compute_type, alg
    )
    layout = _layout(C, compute_type)
    check_buffer(ctx, buffer, layout.nbytes)
    signature = _signature(op_a, op_b, A, B, C, compute_type, alg)
    # An empty pattern needs no scratch, so there is nothing to carry the
    # stage.
    if buffer is not None or layout.nbytes > 0:
        require_stage(
            buffer,
            ROUTINE,
            (Stage.PREPROCESSED, Stage.COMPUTED),
            signature,
        )

    views = layout.views(buffer)
    task = ctx.create_task(SparseOpCode.SDDMM)
    task.add_input(A)
    task.add_input(B)
    task.add_input(views["rows"])
    task.add_input(views["cols"])
    task.add_input(capture(alpha))
    task.add_input(capture(beta))
    task.add_output(C.kernel_view("values"))
    task.add_output(views["dots"])
    task.add_scalar_arg(op_a)
    task.add_scalar_arg(op_b)
    task.add_scalar_arg(compute_type)
    task.add_scalar_arg(settings.sddmm_chunk_size)
    event = task.execute()
    stamp(buffer, ROUTINE, Stage.COMPUTED, signature)
    return event


class SDDMM:
    """Object form of the SDDMM stages for one set of operands.

    Operands can be modified between calls to ``compute`` as long as the
    pattern of ``C`` is unchanged.
    """

    def __init__(
        self,
        ctx,
        op_a,
        op_b,
        alpha,
        A,
        B,
        beta,
        C,
        compute_type,
        alg=SDDMMAlg.DEFAULT,
    ):
        _check_operands(
            ctx, op_a, op_b, alpha, A, B, beta, C, compute_type, alg
        )
        self.ctx = ctx
        self.op_a = op_a
        self.op_b = op_b
        self.alpha = alpha
        self.A = A
        self.B = B
        self.beta = beta
        self.C = C
        self.compute_type = compute_type
        self.alg = alg
        self.state = None

    def _args(self):
        return (
            self.ctx,
            self.op_a,
            self.op_b,
            self.alpha,
            self.A,
            self.B,
            self.beta,
            self.C,
            self.compute_type,
            self.alg,
        )

    def buffer_size(self) -> int:
        nbytes = sddmm_buffer_size(*self._args())
        self.state = Stage.SIZED
        return nbytes

    def preprocess(self, buffer):
        if self.state is None:
            raise InvalidStateError("buffer_size must be queried first")
        event = sddmm_preprocess(*self._args(), buffer)
        self.state = Stage.PREPROCESSED
        return event

    def compute(self, buffer):
        if self.state not in (Stage.PREPROCESSED, Stage.COMPUTED):
            raise InvalidStateError("preprocess must run before compute")
        event = sddmm(*self._args(), buffer)
        self.state = Stage.COMPUTED
        return event
