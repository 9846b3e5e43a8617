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

# Kernels executed by the stream. Each one unpacks its task the same way it
# was packed by the routine that submitted it: inputs, then outputs, then
# scalar arguments, in order. Kernels run asynchronously with respect to
# the routines, so anything they raise is reported as a device fault.

import numpy

from .config import Format, Operation, SparseOpCode
from .runtime import register_kernel
from .scalar import resolve, result_storage


# expand_pos turns an offsets array (already shifted to zero base) into one
# major coordinate per non-zero.
def expand_pos(pos, nnz):
    counts = numpy.diff(pos)
    if counts.size and (counts.min() < 0 or pos[-1] != nnz):
        raise RuntimeError("offsets array is not a valid prefix sum")
    return numpy.repeat(numpy.arange(counts.shape[0]), counts)


@register_kernel(SparseOpCode.DENSE_TO_SPARSE_NNZ)
def dense_to_sparse_nnz(task):
    (dense,) = task.inputs
    (pos,) = task.outputs
    (axis,) = task.scalars
    # Count per row for CSR/COO (axis=1) and per column for CSC (axis=0).
    nonzero = dense.view() != 0
    pos[0] = 0
    numpy.cumsum(numpy.count_nonzero(nonzero, axis=axis), out=pos[1:])


# pos_to_offsets publishes the scratch prefix sum as the offsets array of a
# compressed matrix.
@register_kernel(SparseOpCode.POS_TO_OFFSETS)
def pos_to_offsets(task):
    (pos,) = task.inputs
    (offsets,) = task.outputs
    (base,) = task.scalars
    offsets[:] = pos + base


def _check_counts(pos, major):
    # The dense operand must not have changed since the analysis.
    counts = numpy.bincount(major, minlength=pos.shape[0] - 1)
    if major.shape[0] != pos[-1] or not numpy.array_equal(
        numpy.cumsum(counts), pos[1:]
    ):
        raise RuntimeError(
            "dense operand changed between analysis and conversion"
        )


@register_kernel(SparseOpCode.DENSE_TO_CSR)
def dense_to_csr(task):
    dense, pos = task.inputs
    col_indices, values = task.outputs
    (base,) = task.scalars
    a = dense.view()
    # numpy.nonzero walks in row-major order, so the columns within each row
    # come out strictly ascending.
    rows, cols = numpy.nonzero(a != 0)
    _check_counts(pos, rows)
    col_indices[: cols.shape[0]] = cols + base
    values[: cols.shape[0]] = a[rows, cols]


@register_kernel(SparseOpCode.DENSE_TO_CSC)
def dense_to_csc(task):
    dense, pos = task.inputs
    row_indices, values = task.outputs
    (base,) = task.scalars
    a = dense.view()
    cols, rows = numpy.nonzero(a.T != 0)
    _check_counts(pos, cols)
    row_indices[: rows.shape[0]] = rows + base
    values[: rows.shape[0]] = a[rows, cols]


@register_kernel(SparseOpCode.DENSE_TO_COO)
def dense_to_coo(task):
    dense, pos = task.inputs
    row_indices, col_indices, values = task.outputs
    (base,) = task.scalars
    a = dense.view()
    rows, cols = numpy.nonzero(a != 0)
    _check_counts(pos, rows)
    row_indices[: rows.shape[0]] = rows + base
    col_indices[: cols.shape[0]] = cols + base
    values[: rows.shape[0]] = a[rows, cols]


def _scatter(dense, rows, cols, values):
    out = dense.view()
    out[...] = 0
    # add.at sums duplicate coordinates, which only COO can carry.
    numpy.add.at(out, (rows, cols), values)


@register_kernel(SparseOpCode.CSR_TO_DENSE)
def csr_to_dense(task):
    offsets, col_indices, values = task.inputs
    (dense,) = task.outputs
    (base,) = task.scalars
    nnz = values.shape[0]
    rows = expand_pos(offsets.astype(numpy.int64) - base, nnz)
    cols = col_indices.astype(numpy.int64) - base
    _scatter(dense, rows, cols, values)


@register_kernel(SparseOpCode.CSC_TO_DENSE)
def csc_to_dense(task):
    offsets, row_indices, values = task.inputs
    (dense,) = task.outputs
    (base,) = task.scalars
    nnz = values.shape[0]
    cols = expand_pos(offsets.astype(numpy.int64) - base, nnz)
    rows = row_indices.astype(numpy.int64) - base
    _scatter(dense, rows, cols, values)


@register_kernel(SparseOpCode.COO_TO_DENSE)
def coo_to_dense(task):
    row_indices, col_indices, values = task.inputs
    (dense,) = task.outputs
    (base,) = task.scalars
    rows = row_indices.astype(numpy.int64) - base
    cols = col_indices.astype(numpy.int64) - base
    _scatter(dense, rows, cols, values)


@register_kernel(SparseOpCode.SPVV)
def spvv(task):
    indices, values, y = task.inputs
    partials, result = task.outputs
    op, compute_type, block, base = task.scalars
    x = values.astype(compute_type)
    if op == Operation.CONJUGATE_TRANSPOSE:
        x = numpy.conj(x)
    prod = x * y[indices.astype(numpy.int64) - base].astype(compute_type)
    if prod.shape[0] == 0:
        total = compute_type.type(0)
    else:
        # Reduce block-wise into the scratch, then across blocks.
        starts = numpy.arange(0, prod.shape[0], block)
        numpy.add.reduceat(prod, starts, out=partials)
        total = partials.sum(dtype=compute_type)
    result_storage(result)[0] = total


@register_kernel(SparseOpCode.EXPAND_POS_TO_COORDINATES)
def expand_pos_to_coordinates(task):
    pattern = task.inputs
    rows_out, cols_out = task.outputs
    fmt, base, nnz = task.scalars
    if fmt == Format.COO:
        row_indices, col_indices = pattern
        rows_out[:] = row_indices.astype(numpy.int64) - base
        cols_out[:] = col_indices.astype(numpy.int64) - base
    else:
        offsets, indices = pattern
        major = expand_pos(offsets.astype(numpy.int64) - base, nnz)
        minor = indices.astype(numpy.int64) - base
        if fmt == Format.CSR:
            rows_out[:], cols_out[:] = major, minor
        else:
            rows_out[:], cols_out[:] = minor, major


@register_kernel(SparseOpCode.SDDMM)
def sddmm(task):
    A, B, rows, cols, alpha, beta = task.inputs
    values, dots = task.outputs
    op_a, op_b, compute_type, chunk = task.scalars
    a = A.view()
    if op_a == Operation.TRANSPOSE:
        a = a.T
    b = B.view()
    if op_b == Operation.TRANSPOSE:
        b = b.T
    alpha = resolve(alpha, compute_type)
    beta = resolve(beta, compute_type)

    # Only the rows of op(A) and columns of op(B) that meet a stored entry
    # of C are ever gathered.
    for start in range(0, rows.shape[0], chunk):
        sl = slice(start, start + chunk)
        lhs = a[rows[sl], :].astype(compute_type)
        rhs = b[:, cols[sl]].T.astype(compute_type)
        numpy.einsum("ij,ij->i", lhs, rhs, out=dots[sl])

    result = alpha * dots
    if beta != 0:
        result = result + beta * values.astype(compute_type)
    values[:] = result.astype(values.dtype)
