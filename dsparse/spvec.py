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

import numpy

from .config import IndexBase
from .errors import InvalidArgumentError, NotSupportedError
from .types import index_types, int32
from .utils import as_dtype, as_enum, check_device_array, check_dim


class SparseVector:
    """A length ``size`` vector with ``nnz`` stored entries.

    Unlike the matrix descriptors, nnz is fixed at creation and both arrays
    must be attached up front. Indices are trusted to be distinct and in
    range once the index base is applied.
    """

    def __init__(
        self,
        size,
        nnz,
        indices,
        values,
        index_type=int32,
        index_base=IndexBase.ZERO,
    ):
        self.size = check_dim(size, "size")
        self.nnz = check_dim(nnz, "nnz")
        if self.nnz > self.size:
            raise InvalidArgumentError(
                f"nnz ({self.nnz}) exceeds the vector size ({self.size})"
            )
        self.index_type = as_dtype(index_type, "index_type")
        if self.index_type not in index_types:
            raise NotSupportedError(
                f"Index type {self.index_type} is not supported"
            )
        self.index_base = as_enum(IndexBase, index_base, "index_base")
        self.indices = check_device_array(
            indices, "indices", self.index_type, self.nnz
        )
        self.values = check_device_array(values, "values", None, self.nnz)
        if self.indices.context is not self.values.context:
            raise InvalidArgumentError(
                "indices and values live on different contexts"
            )

    @classmethod
    def from_arrays(
        cls,
        ctx,
        size,
        indices,
        values,
        index_type=int32,
        index_base=IndexBase.ZERO,
    ):
        indices = numpy.asarray(indices, dtype=as_dtype(index_type))
        values = numpy.asarray(values)
        if indices.shape != values.shape or indices.ndim != 1:
            raise InvalidArgumentError(
                "indices and values must be 1-D arrays of the same length"
            )
        return cls(
            size,
            indices.shape[0],
            ctx.to_device(indices),
            ctx.to_device(values),
            index_type=index_type,
            index_base=index_base,
        )

    @property
    def dtype(self) -> numpy.dtype:
        return self.values.dtype

    @property
    def context(self):
        return self.values.context

    def todense(self) -> numpy.ndarray:
        ctx = self.context
        indices = ctx.to_host(self.indices)[: self.nnz].astype(numpy.int64)
        values = ctx.to_host(self.values)[: self.nnz]
        result = numpy.zeros((self.size,), dtype=self.dtype)
        result[indices - int(self.index_base)] = values
        return result

    def __repr__(self) -> str:
        return (
            f"SparseVector(size={self.size}, nnz={self.nnz}, "
            f"index_type={self.index_type}, "
            f"index_base={self.index_base.name}, dtype={self.dtype})"
        )
