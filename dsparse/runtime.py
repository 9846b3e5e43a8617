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

import itertools
import os
from collections import deque
from typing import TYPE_CHECKING, Any, Callable

import numpy as np
from typing_extensions import Protocol

from .config import SparseOpCode
from .errors import ComputeFailureError, InvalidArgumentError
from .settings import settings
from .types import byte_ty

if TYPE_CHECKING:
    from typing import Optional

    import numpy.typing as npt


# Kernels are registered against op codes by the kernels module, the same
# way task variants are registered against op codes in a native library.
KERNELS: dict[SparseOpCode, Callable[["Task"], None]] = {}


def register_kernel(opcode: SparseOpCode):
    def body(fn):
        assert opcode not in KERNELS
        KERNELS[opcode] = fn
        return fn

    return body


class ComputeContext(Protocol):
    """The execution environment the staged operations are issued against.

    Anything with an ordered stream, a device allocator and host/device
    copies can back the library; :class:`Context` is the in-process
    implementation that ships with it.
    """

    stream: "Stream"

    def create_task(self, opcode: SparseOpCode) -> "Task":
        ...

    def allocate(self, nbytes: int) -> "DeviceArray":
        ...

    def empty(self, size: int, dtype: npt.DTypeLike) -> "DeviceArray":
        ...

    def to_device(self, array: npt.ArrayLike) -> "DeviceArray":
        ...

    def to_host(self, array: "DeviceArray") -> np.ndarray:
        ...

    def synchronize(self) -> None:
        ...


class DeviceArray:
    """A typed, one dimensional region of device memory.

    ``storage`` is the kernel-side view of the region. Host code must not
    read it while work touching the region may still be queued; use
    ``Context.to_host`` which synchronizes first.
    """

    def __init__(self, context: Context, storage: np.ndarray):
        assert storage.ndim == 1
        self.context = context
        self.storage = storage
        # Library bookkeeping for scratch regions, see scratch.stamp.
        self.tag: Any = None

    @property
    def dtype(self) -> np.dtype:
        return self.storage.dtype

    @property
    def size(self) -> int:
        return self.storage.shape[0]

    @property
    def nbytes(self) -> int:
        return self.storage.nbytes

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return (
            f"DeviceArray(size={self.size}, dtype={self.dtype}, "
            f"context={self.context.name!r})"
        )


class Event:
    """Completion token for one submitted task.

    A task that faulted, or that was discarded because an earlier task on
    the stream faulted, never becomes ``done``; it reports ``failed``
    instead.
    """

    def __init__(self, stream: Stream, task: Task):
        self.stream = stream
        self.task = task

    @property
    def seq(self) -> int:
        return self.task.seq

    @property
    def done(self) -> bool:
        return self.task.finished and not self.task.failed

    @property
    def failed(self) -> bool:
        return self.task.failed

    def wait(self) -> None:
        self.stream.synchronize(upto=self.seq)
        if self.task.failed:
            raise ComputeFailureError(
                f"Task {self.task.opcode.name} (#{self.seq}) failed or was "
                "discarded after a fault on the stream"
            )

    def __repr__(self) -> str:
        return f"Event(seq={self.seq}, done={self.done})"


class Task:
    def __init__(self, context: Context, opcode: SparseOpCode):
        self.context = context
        self.opcode = opcode
        self.inputs: list[Any] = []
        self.outputs: list[Any] = []
        self.scalars: list[Any] = []
        self.seq = 0
        self.finished = False
        self.failed = False

    def add_input(self, value: Any) -> None:
        self.inputs.append(value)

    def add_output(self, value: Any) -> None:
        self.outputs.append(value)

    def add_scalar_arg(self, value: Any) -> None:
        self.scalars.append(value)

    def execute(self) -> Event:
        return self.context.stream.submit(self)


class Stream:
    """An ordered execution queue.

    Tasks run strictly in issue order. With ``settings.eager`` they run as
    soon as they are submitted, otherwise they wait in the queue until a
    synchronization drains it. Either way, an exception raised by a kernel
    is treated as a device fault: it is held by the stream, the remaining
    queued tasks are discarded, and it is raised as a
    ``ComputeFailureError`` by the next synchronization.
    """

    def __init__(self, context: Context):
        self.context = context
        self.issued = 0
        self.completed = 0
        self._queue: deque[Task] = deque()
        self._fault: Optional[tuple[Task, BaseException]] = None

    def submit(self, task: Task) -> Event:
        if task.opcode not in KERNELS:
            raise InvalidArgumentError(
                f"No kernel is registered for {task.opcode.name}"
            )
        self.issued += 1
        task.seq = self.issued
        self._queue.append(task)
        if settings.eager:
            self._drain(task.seq)
        return Event(self, task)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def _drain(self, upto: int) -> None:
        while self._queue and self._queue[0].seq <= upto:
            task = self._queue.popleft()
            if self._fault is None:
                try:
                    KERNELS[task.opcode](task)
                except Exception as e:
                    self._fault = (task, e)
            task.failed = self._fault is not None
            task.finished = True
            self.completed = task.seq

    def synchronize(self, upto: Optional[int] = None) -> None:
        self._drain(self.issued if upto is None else upto)
        if self._fault is not None:
            task, exc = self._fault
            self._fault = None
            raise ComputeFailureError(
                f"Task {task.opcode.name} (#{task.seq}) failed on stream "
                f"of context {self.context.name!r}: {exc}"
            ) from exc


class Context:
    _ids = itertools.count(1)

    def __init__(self, name: Optional[str] = None):
        self.name = name if name is not None else f"device{next(self._ids)}"
        self.stream = Stream(self)

    def create_task(self, opcode: SparseOpCode) -> Task:
        return Task(self, opcode)

    def allocate(self, nbytes: int) -> DeviceArray:
        nbytes = int(nbytes)
        if nbytes < 0:
            raise InvalidArgumentError(f"Cannot allocate {nbytes} bytes")
        return DeviceArray(self, np.zeros((nbytes,), dtype=byte_ty))

    def empty(self, size: int, dtype: npt.DTypeLike) -> DeviceArray:
        size = int(size)
        if size < 0:
            raise InvalidArgumentError(f"Invalid array size {size}")
        return DeviceArray(self, np.zeros((size,), dtype=np.dtype(dtype)))

    def to_device(self, array: npt.ArrayLike) -> DeviceArray:
        # Multi-dimensional inputs are flattened in row-major order; use
        # array.ravel(order="F") first to lay out column-major data.
        host = np.array(array, copy=True)
        return DeviceArray(self, host.reshape(-1))

    def to_host(self, array: DeviceArray) -> np.ndarray:
        if array.context is not self:
            raise InvalidArgumentError(
                f"{array!r} does not belong to context {self.name!r}"
            )
        self.synchronize()
        return array.storage.copy()

    def synchronize(self) -> None:
        self.stream.synchronize()

    def __repr__(self) -> str:
        return f"Context({self.name!r})"


class Runtime:
    def __init__(self):
        self.default_context = Context("device0")
        if "DSPARSE_EAGER" in os.environ:
            print(
                f"Overriding DSPARSE_EAGER to {settings.eager}: kernels "
                "run at submission time"
            )

    def create_context(self, name: Optional[str] = None) -> Context:
        return Context(name)


runtime = Runtime()
ctx = runtime.default_context
