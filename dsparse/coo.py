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

import scipy.sparse

from .base import SparseMatrixBase
from .config import Format, IndexBase
from .types import int32


class CooMatrix(SparseMatrixBase):
    """Coordinate format descriptor: one (row, col, value) triple per
    non-zero. Duplicate coordinates are allowed by the layout but are
    summed when the matrix is densified.
    """

    format = Format.COO
    _array_names = ("row_indices", "col_indices", "values")

    def __init__(
        self,
        rows,
        cols,
        nnz=0,
        row_indices=None,
        col_indices=None,
        values=None,
        index_type=int32,
        index_base=IndexBase.ZERO,
        value_type=None,
    ):
        value_type = self.infer_value_type(values, value_type)
        super().__init__(rows, cols, nnz, index_type, index_base, value_type)
        self.row_indices = self._check_index_array(
            row_indices, "row_indices", self.nnz
        )
        self.col_indices = self._check_index_array(
            col_indices, "col_indices", self.nnz
        )
        self.values = self._check_value_array(values, self.nnz)

    def _arrays(self):
        return (self.row_indices, self.col_indices, self.values)

    def set_pointers(self, row_indices, col_indices, values):
        row_indices = self._check_index_array(
            row_indices, "row_indices", self.nnz
        )
        col_indices = self._check_index_array(
            col_indices, "col_indices", self.nnz
        )
        values = self._check_value_array(values, self.nnz)
        if (
            row_indices is not self.row_indices
            or col_indices is not self.col_indices
        ):
            self.pattern_version += 1
        self.row_indices = row_indices
        self.col_indices = col_indices
        self.values = values

    def to_scipy(self):
        base = int(self.index_base)
        row = self._host(self.row_indices, self.nnz) - base
        col = self._host(self.col_indices, self.nnz) - base
        return scipy.sparse.coo_array(
            (self._host_values(), (row, col)),
            shape=self.shape,
            dtype=self.dtype,
        )
