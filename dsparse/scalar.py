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
from __future__ import annotations

from typing import TYPE_CHECKING, Union

import numpy

from .config import ScalarLocation
from .errors import (
    ComputeFailureError,
    InvalidArgumentError,
    InvalidStateError,
)
from .runtime import DeviceArray
from .utils import as_dtype

if TYPE_CHECKING:
    from typing import Optional

    from .runtime import Event


class HostValue:
    """A scalar living in host memory.

    When a submitted operation writes into a host value, the value records
    the completion event of that operation and refuses to be read until the
    stream has been synchronized past it.

    ``HostValue()`` with neither a value nor a dtype is an untyped result
    slot: the first operation that writes into it gives it that
    operation's compute type.
    """

    location = ScalarLocation.HOST

    def __init__(self, value=None, dtype=None):
        self._data: Optional[numpy.ndarray] = None
        self._event: Optional[Event] = None
        if value is None and dtype is None:
            return
        if value is None:
            value = 0
        if dtype is None:
            dtype = numpy.asarray(value).dtype
        self._data = numpy.zeros((1,), dtype=as_dtype(dtype))
        self._data[0] = value

    @property
    def dtype(self) -> Optional[numpy.dtype]:
        return None if self._data is None else self._data.dtype

    @property
    def context(self):
        return None

    @property
    def ready(self) -> bool:
        return self._event is None or self._event.done

    def bind(self, dtype) -> None:
        """Give an untyped value its storage type. Typed values keep theirs."""
        if self._data is None:
            self._data = numpy.zeros((1,), dtype=as_dtype(dtype))

    def get(self):
        if self._event is not None and self._event.failed:
            raise ComputeFailureError(
                "The operation producing this value failed on the device "
                "stream; its contents are unspecified"
            )
        if not self.ready:
            raise InvalidStateError(
                "The value is still being produced on the device stream; "
                "synchronize the context before reading it"
            )
        if self._data is None:
            raise InvalidStateError("The value has not been written yet")
        return self._data[0]

    def set(self, value) -> None:
        self.bind(numpy.asarray(value).dtype)
        self._data[0] = value
        self._event = None

    def __repr__(self) -> str:
        state = "ready" if self.ready else "pending"
        return f"HostValue(dtype={self.dtype}, {state})"


class DeviceValue:
    """A scalar living in device memory, backed by a one element array.

    Reading it on the host goes through ``Context.to_host``, which carries
    the synchronization with it.
    """

    location = ScalarLocation.DEVICE

    def __init__(self, array: DeviceArray):
        if not isinstance(array, DeviceArray) or array.size < 1:
            raise InvalidArgumentError(
                "DeviceValue must wrap a DeviceArray with at least one element"
            )
        self.array = array

    @classmethod
    def create(cls, ctx, value=0, dtype=None) -> "DeviceValue":
        if dtype is None:
            dtype = numpy.asarray(value).dtype
        data = numpy.full((1,), value, dtype=as_dtype(dtype))
        return cls(ctx.to_device(data))

    @property
    def dtype(self) -> numpy.dtype:
        return self.array.dtype

    @property
    def context(self):
        return self.array.context

    def get(self):
        return self.array.context.to_host(self.array)[0]

    def __repr__(self) -> str:
        return f"DeviceValue(dtype={self.dtype}, context={self.context!r})"


Scalar = Union[HostValue, DeviceValue]


# as_scalar accepts host/device scalars and wraps plain numbers as host
# values.
def as_scalar(value, name) -> Scalar:
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None")
    if isinstance(value, HostValue) and value.dtype is None:
        raise InvalidArgumentError(f"{name} has no value")
    if isinstance(value, (HostValue, DeviceValue)):
        return value
    if numpy.ndim(value) != 0:
        raise InvalidArgumentError(f"{name} must be a scalar, got {value!r}")
    return HostValue(value)


# capture snapshots a scalar input at submission time. Host values are read
# now; device values are read by the kernel, in stream order.
def capture(value: Scalar):
    if isinstance(value, HostValue):
        return value.get()
    return value


# resolve is the kernel-side counterpart of capture.
def resolve(captured, dtype):
    if isinstance(captured, DeviceValue):
        captured = captured.array.storage[0]
    return numpy.asarray(captured).astype(dtype)[()]


# result_storage returns the one element array a kernel writes a scalar
# result into.
def result_storage(result: Scalar) -> numpy.ndarray:
    if isinstance(result, HostValue):
        return result._data
    return result.array.storage


def mark_pending(result: Scalar, event: Event) -> None:
    if isinstance(result, HostValue):
        result._event = event
