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

import warnings

import numpy

from .config import Operation, Routine, SparseOpCode
from .dense import DenseVector
from .errors import InvalidArgumentError, NotSupportedError
from .scalar import DeviceValue, HostValue, mark_pending
from .scratch import ScratchLayout, check_buffer
from .settings import settings
from .spvec import SparseVector
from .utils import (
    as_dtype,
    as_enum,
    check_not_none,
    check_same_context,
    find_last_user_stacklevel,
)
from .validate import require_supported


def _check_operands(ctx, op, x, y, result, compute_type):
    check_not_none(
        ctx=ctx, x=x, y=y, result=result, compute_type=compute_type
    )
    op = as_enum(Operation, op, "op")
    # For a vector, op(x) is x or conj(x); a plain transpose has no
    # meaning of its own.
    if op == Operation.TRANSPOSE:
        raise NotSupportedError(
            "spvv supports NON_TRANSPOSE and CONJUGATE_TRANSPOSE only"
        )
    if not isinstance(x, SparseVector):
        raise InvalidArgumentError(
            f"x must be a SparseVector, got {type(x).__name__}"
        )
    if not isinstance(y, DenseVector):
        raise InvalidArgumentError(
            f"y must be a DenseVector, got {type(y).__name__}"
        )
    if not isinstance(result, (HostValue, DeviceValue)):
        raise InvalidArgumentError(
            "result must be a HostValue or a DeviceValue, got "
            f"{type(result).__name__}"
        )
    if x.size != y.size:
        raise InvalidArgumentError(
            f"Size mismatch: x has {x.size} elements, y has {y.size}"
        )
    compute_type = as_dtype(compute_type, "compute_type")
    require_supported(Routine.SPVV, (x.dtype, y.dtype), compute_type)
    # An untyped HostValue() takes the compute type when spvv writes it.
    if result.dtype is not None and not numpy.can_cast(
        compute_type, result.dtype, "same_kind"
    ):
        raise NotSupportedError(
            f"Cannot store a {compute_type} result into a {result.dtype} "
            "value"
        )
    check_same_context(ctx, x=x, y=y, result=result)
    return op, compute_type


def _layout(x, compute_type):
    blocks = -(-x.nnz // settings.spvv_block_size)
    return ScratchLayout().add("partials", compute_type, blocks)


def _check_indices(x):
    indices = x.context.to_host(x.indices)[: x.nnz].astype(numpy.int64)
    indices -= int(x.index_base)
    if indices.size and (indices.min() < 0 or indices.max() >= x.size):
        raise InvalidArgumentError("x has indices out of range")
    if numpy.unique(indices).size != indices.size:
        raise InvalidArgumentError("x has duplicate indices")


def spvv_buffer_size(ctx, op, x, y, result, compute_type) -> int:
    """Scratch bytes needed by ``spvv`` for these operands."""
    _, compute_type = _check_operands(ctx, op, x, y, result, compute_type)
    return _layout(x, compute_type).nbytes


def spvv(ctx, op, x, y, result, compute_type, buffer):
    """Submit ``result = sum(op(x[i]) * y[idx[i]])``.

    The products and the accumulation are done in ``compute_type``. The
    returned event completes when ``result`` has been written; a host
    ``result`` cannot be read before the context is synchronized past it.
    """
    op, compute_type = _check_operands(ctx, op, x, y, result, compute_type)
    layout = _layout(x, compute_type)
    check_buffer(ctx, buffer, layout.nbytes)
    if settings.check_indices:
        _check_indices(x)
    if isinstance(result, HostValue):
        result.bind(compute_type)
    if not numpy.can_cast(compute_type, result.dtype, "safe"):
        warnings.warn(
            f"spvv result computed in {compute_type} is narrowed to "
            f"{result.dtype}",
            category=RuntimeWarning,
            stacklevel=find_last_user_stacklevel(),
        )

    task = ctx.create_task(SparseOpCode.SPVV)
    task.add_input(x.indices.storage[: x.nnz])
    task.add_input(x.values.storage[: x.nnz])
    task.add_input(y.view())
    task.add_output(layout.views(buffer)["partials"])
    task.add_output(result)
    task.add_scalar_arg(op)
    task.add_scalar_arg(compute_type)
    task.add_scalar_arg(settings.spvv_block_size)
    task.add_scalar_arg(int(x.index_base))
    event = task.execute()
    mark_pending(result, event)
    return event
