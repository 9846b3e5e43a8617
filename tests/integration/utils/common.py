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

import dsparse
from dsparse import Format

types = [np.float32, np.float64, np.complex64, np.complex128]

# float16 is supported by the conversions but not by scipy.sparse.
conversion_types = [np.float16] + types

formats = [Format.CSR, Format.CSC, Format.COO]


def is_complex(dtype):
    return np.issubdtype(np.dtype(dtype), np.complexfloating)


def tolerance(dtype):
    dtype = np.dtype(dtype)
    if dtype in (np.float16,):
        return 1e-2
    if dtype in (np.float32, np.complex64):
        return 1e-4
    return 1e-10


def random_dense(rows, cols, dtype, density=0.3, seed=0):
    rng = np.random.default_rng(seed)
    a = rng.uniform(0.5, 2.0, (rows, cols))
    if is_complex(dtype):
        a = a + 1j * rng.uniform(0.5, 2.0, (rows, cols))
    mask = rng.random((rows, cols)) < density
    return (a * mask).astype(dtype)


def to_sparse(ctx, dense, format, index_type=np.int32, index_base=0):
    """Run the three conversion stages and return the filled descriptor."""
    B = dsparse.empty_like_dense(
        dense, format, ctx=ctx, index_type=index_type, index_base=index_base
    )
    nbytes = dsparse.dense_to_sparse_buffer_size(ctx, dense, B)
    buffer = ctx.allocate(nbytes)
    dsparse.dense_to_sparse_analysis(
        ctx, dense, B, dsparse.DenseToSparseAlg.DEFAULT, buffer
    )
    dsparse.attach_nnz_arrays(B, ctx=ctx)
    dsparse.dense_to_sparse_convert(
        ctx, dense, B, dsparse.DenseToSparseAlg.DEFAULT, buffer
    )
    return B


def densify(ctx, A):
    """Scatter a sparse descriptor back into a host array."""
    out = dsparse.from_numpy(np.zeros(A.shape, dtype=A.dtype), ctx=ctx)
    dsparse.sparse_to_dense(ctx, A, out)
    return out.todense()
