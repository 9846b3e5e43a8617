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

from .base import CompressedBase
from .config import Format, IndexBase
from .types import int32


class CsrMatrix(CompressedBase):
    """Compressed sparse row descriptor.

    ``row_offsets`` has rows + 1 entries and can be attached up front, as
    its size only depends on the shape. ``col_indices`` and ``values`` hold
    nnz entries each and may be attached later, e.g. once a dense-to-sparse
    analysis has determined nnz.
    """

    format = Format.CSR
    major_axis = 0
    _array_names = ("row_offsets", "col_indices", "values")

    def __init__(
        self,
        rows,
        cols,
        nnz=0,
        row_offsets=None,
        col_indices=None,
        values=None,
        index_type=int32,
        index_base=IndexBase.ZERO,
        value_type=None,
    ):
        value_type = self.infer_value_type(values, value_type)
        super().__init__(
            rows,
            cols,
            nnz,
            row_offsets,
            col_indices,
            values,
            index_type,
            index_base,
            value_type,
        )

    @property
    def row_offsets(self):
        return self.offsets

    @property
    def col_indices(self):
        return self.indices

    def to_scipy(self):
        indptr, indices = self._host_pattern()
        return scipy.sparse.csr_array(
            (self._host_values(), indices, indptr),
            shape=self.shape,
            dtype=self.dtype,
        )
