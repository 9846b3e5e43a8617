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
from numpy.lib.stride_tricks import as_strided

from .config import Order
from .errors import InvalidArgumentError
from .utils import as_enum, check_device_array, check_dim


class DenseMatrix:
    """A strided rows x cols view over device memory.

    ``ld`` is the distance, in elements, between the starts of consecutive
    rows (row-major) or columns (column-major). The memory is owned by the
    caller; the view never copies it.
    """

    def __init__(self, rows, cols, ld, data, order=Order.ROW):
        self.rows = check_dim(rows, "rows")
        self.cols = check_dim(cols, "cols")
        self.ld = check_dim(ld, "ld")
        self.order = as_enum(Order, order, "order")
        if self.order == Order.ROW:
            outer, inner = self.rows, self.cols
        else:
            outer, inner = self.cols, self.rows
        if self.ld < max(inner, 1):
            raise InvalidArgumentError(
                f"Leading dimension {self.ld} is smaller than the "
                f"contiguous extent {inner} of a "
                f"{self.order.name.lower()}-major {rows}x{cols} matrix"
            )
        required = 0
        if outer > 0 and inner > 0:
            required = (outer - 1) * self.ld + inner
        self.data = check_device_array(data, "data", min_size=required)

    @classmethod
    def from_array(cls, ctx, array, order=Order.ROW):
        array = numpy.asarray(array)
        if array.ndim != 2:
            raise InvalidArgumentError("Dense matrices must be 2-D")
        rows, cols = array.shape
        if as_enum(Order, order, "order") == Order.ROW:
            data = ctx.to_device(array.ravel(order="C"))
            ld = max(cols, 1)
        else:
            data = ctx.to_device(array.ravel(order="F"))
            ld = max(rows, 1)
        return cls(rows, cols, ld, data, order=order)

    @property
    def shape(self):
        return (self.rows, self.cols)

    @property
    def dtype(self) -> numpy.dtype:
        return self.data.dtype

    @property
    def context(self):
        return self.data.context

    def view(self) -> numpy.ndarray:
        # Kernel-side 2-D view honoring ld and order.
        itemsize = self.dtype.itemsize
        if self.order == Order.ROW:
            strides = (self.ld * itemsize, itemsize)
        else:
            strides = (itemsize, self.ld * itemsize)
        return as_strided(
            self.data.storage, shape=self.shape, strides=strides
        )

    def todense(self) -> numpy.ndarray:
        self.context.synchronize()
        return numpy.array(self.view())

    def __repr__(self) -> str:
        return (
            f"DenseMatrix(shape={self.shape}, ld={self.ld}, "
            f"order={self.order.name}, dtype={self.dtype})"
        )


class DenseVector:
    def __init__(self, size, data):
        self.size = check_dim(size, "size")
        self.data = check_device_array(data, "data", min_size=self.size)

    @classmethod
    def from_array(cls, ctx, array):
        array = numpy.asarray(array)
        if array.ndim != 1:
            raise InvalidArgumentError("Dense vectors must be 1-D")
        return cls(array.shape[0], ctx.to_device(array))

    @property
    def dtype(self) -> numpy.dtype:
        return self.data.dtype

    @property
    def context(self):
        return self.data.context

    def view(self) -> numpy.ndarray:
        return self.data.storage[: self.size]

    def __repr__(self) -> str:
        return f"DenseVector(size={self.size}, dtype={self.dtype})"
