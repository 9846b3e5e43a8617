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

from .base import SparseMatrixBase
from .config import Format, Routine, SparseOpCode, SparseToDenseAlg
from .dense import DenseMatrix
from .errors import InvalidArgumentError
from .scratch import check_buffer
from .utils import as_enum, check_not_none, check_same_context
from .validate import require_supported

_KERNELS = {
    Format.CSR: (SparseOpCode.CSR_TO_DENSE, ("row_offsets", "col_indices")),
    Format.CSC: (SparseOpCode.CSC_TO_DENSE, ("col_offsets", "row_indices")),
    Format.COO: (SparseOpCode.COO_TO_DENSE, ("row_indices", "col_indices")),
}


def _check_operands(ctx, A, B, alg):
    check_not_none(ctx=ctx, A=A, B=B)
    if not isinstance(A, SparseMatrixBase) or A.format not in _KERNELS:
        raise InvalidArgumentError(
            f"A must be a sparse matrix, got {type(A).__name__}"
        )
    if not isinstance(B, DenseMatrix):
        raise InvalidArgumentError(
            f"B must be a DenseMatrix, got {type(B).__name__}"
        )
    alg = as_enum(SparseToDenseAlg, alg, "alg")
    if A.shape != B.shape:
        raise InvalidArgumentError(
            f"Shape mismatch: sparse {A.shape} vs dense {B.shape}"
        )
    check_same_context(ctx, A=A, B=B)
    require_supported(Routine.SPARSE_TO_DENSE, (A.dtype, B.dtype))
    return alg


# The scatter works in place in B, so no scratch is ever needed.
def sparse_to_dense_buffer_size(
    ctx, A, B, alg=SparseToDenseAlg.DEFAULT
) -> int:
    _check_operands(ctx, A, B, alg)
    return 0


def sparse_to_dense(ctx, A, B, alg=SparseToDenseAlg.DEFAULT, buffer=None):
    """Write ``A`` into ``B``, zeroing every entry ``A`` does not store.

    Entries at duplicate COO coordinates are summed.
    """
    _check_operands(ctx, A, B, alg)
    check_buffer(ctx, buffer, 0)
    A.require_arrays("sparse_to_dense")

    opcode, pattern = _KERNELS[A.format]
    task = ctx.create_task(opcode)
    for name in pattern:
        task.add_input(A.kernel_view(name))
    task.add_input(A.kernel_view("values"))
    task.add_output(B)
    task.add_scalar_arg(int(A.index_base))
    return task.execute()
