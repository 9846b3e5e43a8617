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

from . import kernels  # noqa: F401  registers the kernels with the stream
from .config import (
    DenseToSparseAlg,
    Format,
    IndexBase,
    Operation,
    Order,
    Routine,
    ScalarLocation,
    SDDMMAlg,
    SparseToDenseAlg,
    Stage,
    Status,
)
from .coo import CooMatrix
from .csc import CscMatrix
from .csr import CsrMatrix
from .dense import DenseMatrix, DenseVector
from .dense2sparse import (
    DenseToSparse,
    dense_to_sparse_analysis,
    dense_to_sparse_buffer_size,
    dense_to_sparse_convert,
)
from .errors import (
    ComputeFailureError,
    InsufficientResourcesError,
    InvalidArgumentError,
    InvalidStateError,
    NotSupportedError,
    SparseError,
)
from .module import (
    attach_nnz_arrays,
    empty_like_dense,
    from_numpy,
    from_scipy,
    sparse_vector,
)
from .runtime import Context, DeviceArray, Event, runtime
from .scalar import DeviceValue, HostValue
from .sddmm import SDDMM, sddmm, sddmm_buffer_size, sddmm_preprocess
from .settings import settings
from .sparse2dense import sparse_to_dense, sparse_to_dense_buffer_size
from .spvec import SparseVector
from .spvv import spvv, spvv_buffer_size
from .validate import (
    Support,
    lookup,
    require_supported,
    supported_combinations,
)
