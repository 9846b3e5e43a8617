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
from .types import index_types
from .utils import as_dtype, as_enum, check_device_array, check_dim


# SparseMatrixBase holds the metadata shared by every sparse matrix format.
# Descriptors never own memory: arrays are attached by the caller, possibly
# long after the descriptor was created, and the core only ever updates the
# metadata (nnz) in place.
class SparseMatrixBase:
    format = None

    def __init__(self, rows, cols, nnz, index_type, index_base, value_type):
        self.rows = check_dim(rows, "rows")
        self.cols = check_dim(cols, "cols")
        self.nnz = check_dim(nnz, "nnz")
        self.index_type = as_dtype(index_type, "index_type")
        if self.index_type not in index_types:
            raise NotSupportedError(
                f"Index type {self.index_type} is not supported, use one of "
                f"{[str(t) for t in index_types]}"
            )
        self.index_base = as_enum(IndexBase, index_base, "index_base")
        self.value_type = as_dtype(value_type, "value_type")
        # Bumped whenever a new non-zero pattern is attached. Stages that
        # cache information about the pattern compare against it.
        self.pattern_version = 0

    @property
    def shape(self):
        return (self.rows, self.cols)

    @property
    def dtype(self) -> numpy.dtype:
        return self.value_type

    @property
    def context(self):
        for arr in self._arrays():
            if arr is not None:
                return arr.context
        return None

    @staticmethod
    def infer_value_type(values, value_type):
        if value_type is not None:
            return value_type
        if values is None:
            raise InvalidArgumentError(
                "value_type is required when no values are attached"
            )
        return values.dtype

    def get_size(self):
        return self.rows, self.cols, self.nnz

    def _arrays(self):
        raise NotImplementedError

    def _check_index_array(self, arr, name, min_size):
        if arr is None:
            return None
        return check_device_array(arr, name, self.index_type, min_size)

    def _check_value_array(self, arr, min_size):
        if arr is None:
            return None
        return check_device_array(arr, "values", self.value_type, min_size)

    def set_values(self, values):
        self.values = self._check_value_array(values, self.nnz)

    # require_arrays is called by stages that read or write the non-zeros.
    # Arrays sized by nnz may stay unattached while nnz is zero.
    def require_arrays(self, what):
        missing = [
            name
            for name, arr in zip(self._array_names, self._arrays())
            if arr is None and self._required_size(name) > 0
        ]
        if missing:
            raise InvalidArgumentError(
                f"{what}: {self.format.name} matrix has no "
                f"{', '.join(missing)} attached"
            )
        for name, arr in zip(self._array_names, self._arrays()):
            need = self._required_size(name)
            if arr is not None and arr.size < need:
                raise InvalidArgumentError(
                    f"{what}: {name} holds {arr.size} elements, but "
                    f"{need} are required"
                )

    def _required_size(self, name):
        return self.nnz

    # kernel_view returns the kernel-side view of one attached array,
    # trimmed to the extent the descriptor metadata describes.
    def kernel_view(self, name):
        arr = getattr(self, name)
        count = self._required_size(name)
        if arr is None:
            dtype = self.value_type if name == "values" else self.index_type
            return numpy.zeros((0,), dtype=dtype)
        return arr.storage[:count]

    def _host(self, arr, count):
        if arr is None:
            return numpy.zeros((0,), dtype=self.index_type)
        return arr.context.to_host(arr)[:count]

    def _host_values(self):
        if self.values is None:
            return numpy.zeros((0,), dtype=self.value_type)
        return self.values.context.to_host(self.values)[: self.nnz]

    def to_scipy(self):
        raise NotImplementedError

    def todense(self):
        return numpy.asarray(self.to_scipy().todense())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(shape={self.shape}, nnz={self.nnz}, "
            f"index_type={self.index_type}, "
            f"index_base={self.index_base.name}, dtype={self.dtype})"
        )


# CompressedBase is a base class for sparse matrices that have a TACO
# format of {Dense, Sparse}. For our purposes, that means CSC and CSR
# matrices: an offsets array over the major axis plus parallel index
# and value arrays.
class CompressedBase(SparseMatrixBase):
    major_axis = 0

    def __init__(
        self,
        rows,
        cols,
        nnz,
        offsets,
        indices,
        values,
        index_type,
        index_base,
        value_type,
    ):
        super().__init__(rows, cols, nnz, index_type, index_base, value_type)
        self.offsets = self._check_index_array(
            offsets, self._array_names[0], self.major_dim + 1
        )
        self.indices = self._check_index_array(
            indices, self._array_names[1], self.nnz
        )
        self.values = self._check_value_array(values, self.nnz)

    @property
    def major_dim(self):
        return self.shape[self.major_axis]

    @property
    def minor_dim(self):
        return self.shape[1 - self.major_axis]

    def _arrays(self):
        return (self.offsets, self.indices, self.values)

    def _required_size(self, name):
        if name == self._array_names[0]:
            return self.major_dim + 1
        return self.nnz

    def set_pointers(self, offsets, indices, values):
        offsets = self._check_index_array(
            offsets, self._array_names[0], self.major_dim + 1
        )
        indices = self._check_index_array(
            indices, self._array_names[1], self.nnz
        )
        values = self._check_value_array(values, self.nnz)
        if offsets is not self.offsets or indices is not self.indices:
            self.pattern_version += 1
        self.offsets, self.indices, self.values = offsets, indices, values

    def _host_pattern(self):
        base = int(self.index_base)
        if self.offsets is None:
            offsets = numpy.zeros((self.major_dim + 1,), dtype=numpy.int64)
        else:
            offsets = self._host(self.offsets, self.major_dim + 1) - base
        indices = self._host(self.indices, self.nnz) - base
        return offsets, indices
