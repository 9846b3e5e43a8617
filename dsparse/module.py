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

from typing import Optional

import numpy
import scipy.sparse

from .config import Format, IndexBase, Order
from .coo import CooMatrix
from .csc import CscMatrix
from .csr import CsrMatrix
from .dense import DenseMatrix, DenseVector
from .errors import InvalidArgumentError
from .runtime import ComputeContext, runtime
from .spvec import SparseVector
from .types import int32
from .utils import as_dtype, as_enum


def _context(ctx: Optional[ComputeContext]) -> ComputeContext:
    return runtime.default_context if ctx is None else ctx


def from_scipy(A, ctx=None, index_type=int32, index_base=IndexBase.ZERO):
    """Copy a scipy.sparse matrix or array to device memory.

    CSR and CSC inputs keep their format, everything else becomes COO.
    Indices are converted to ``index_type`` and shifted to ``index_base``.
    """
    if not scipy.sparse.issparse(A):
        raise InvalidArgumentError(
            f"Expected a scipy.sparse matrix, got {type(A).__name__}"
        )
    ctx = _context(ctx)
    index_type = as_dtype(index_type, "index_type")
    base = int(as_enum(IndexBase, index_base, "index_base"))
    rows, cols = A.shape

    def device_indices(arr):
        return ctx.to_device(numpy.asarray(arr, dtype=index_type) + base)

    if A.format in ("csr", "csc"):
        A = A.copy()
        A.sort_indices()
        cls = CsrMatrix if A.format == "csr" else CscMatrix
        return cls(
            rows,
            cols,
            A.nnz,
            device_indices(A.indptr),
            device_indices(A.indices),
            ctx.to_device(A.data),
            index_type=index_type,
            index_base=index_base,
        )
    A = scipy.sparse.coo_array(A)
    return CooMatrix(
        rows,
        cols,
        A.nnz,
        device_indices(A.row),
        device_indices(A.col),
        ctx.to_device(A.data),
        index_type=index_type,
        index_base=index_base,
    )


def empty_like_dense(A, format, ctx=None, index_type=int32, index_base=0):
    """A descriptor ready for ``dense_to_sparse_analysis`` of ``A``.

    Compressed formats get their offsets array attached, since the analysis
    fills it in. Index and value arrays are left for the caller to attach
    once ``nnz`` is known.
    """
    ctx = _context(ctx)
    format = as_enum(Format, format, "format")
    if format == Format.COO:
        return CooMatrix(
            A.rows,
            A.cols,
            index_type=index_type,
            index_base=index_base,
            value_type=A.dtype,
        )
    cls = CsrMatrix if format == Format.CSR else CscMatrix
    major = A.rows if format == Format.CSR else A.cols
    return cls(
        A.rows,
        A.cols,
        0,
        ctx.empty(major + 1, index_type),
        index_type=index_type,
        index_base=index_base,
        value_type=A.dtype,
    )


def attach_nnz_arrays(B, ctx=None):
    """Allocate and attach index and value arrays holding ``B.nnz``
    entries, keeping any offsets array already attached.
    """
    ctx = _context(ctx)
    indices = ctx.empty(B.nnz, B.index_type)
    values = ctx.empty(B.nnz, B.value_type)
    if B.format == Format.COO:
        B.set_pointers(indices, ctx.empty(B.nnz, B.index_type), values)
    else:
        B.set_pointers(B.offsets, indices, values)
    return B


def from_numpy(array, ctx=None, order=Order.ROW):
    """Copy a 1-D or 2-D numpy array into a dense device operand."""
    ctx = _context(ctx)
    array = numpy.asarray(array)
    if array.ndim == 1:
        return DenseVector.from_array(ctx, array)
    return DenseMatrix.from_array(ctx, array, order=order)


def sparse_vector(
    size, indices, values, ctx=None, index_type=int32, index_base=0
):
    return SparseVector.from_arrays(
        _context(ctx),
        size,
        indices,
        values,
        index_type=index_type,
        index_base=index_base,
    )
