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
import pytest
from pydantic import ValidationError

import dsparse
from dsparse import HostValue, Status, runtime, settings
from dsparse.config import SparseOpCode
from dsparse.runtime import KERNELS
from dsparse.settings import load_settings

OPCODE = SparseOpCode.SPVV


@pytest.fixture
def recorder(monkeypatch):
    monkeypatch.delenv("DSPARSE_EAGER", raising=False)
    seen = []

    def kernel(task):
        (value,) = task.scalars
        if value == "boom":
            raise IndexError("bad index")
        seen.append(value)

    monkeypatch.setitem(KERNELS, OPCODE, kernel)
    return seen


def submit(ctx, value):
    task = ctx.create_task(OPCODE)
    task.add_scalar_arg(value)
    return task.execute()


def test_stream_runs_in_issue_order(recorder):
    ctx = runtime.create_context()
    events = [submit(ctx, i) for i in range(3)]
    assert ctx.stream.pending == 3
    assert not any(e.done for e in events)
    events[1].wait()
    assert recorder == [0, 1]
    assert events[1].done and not events[2].done
    ctx.synchronize()
    assert recorder == [0, 1, 2]
    assert ctx.stream.pending == 0
    assert ctx.stream.completed == ctx.stream.issued == 3


def test_eager_stream(recorder, monkeypatch):
    monkeypatch.setenv("DSPARSE_EAGER", "1")
    ctx = runtime.create_context()
    event = submit(ctx, "a")
    assert event.done
    assert recorder == ["a"]


def test_fault_reported_at_synchronize(recorder):
    ctx = runtime.create_context()
    submit(ctx, 1)
    submit(ctx, "boom")
    submit(ctx, 3)
    with pytest.raises(dsparse.ComputeFailureError) as info:
        ctx.synchronize()
    assert isinstance(info.value.__cause__, IndexError)
    assert info.value.status == Status.EXECUTION_FAILED
    # Work queued behind the fault is discarded.
    assert recorder == [1]
    ctx.synchronize()
    submit(ctx, 4)
    ctx.synchronize()
    assert recorder == [1, 4]


def test_eager_fault_is_deferred(recorder, monkeypatch):
    monkeypatch.setenv("DSPARSE_EAGER", "true")
    ctx = runtime.create_context()
    submit(ctx, "boom")
    with pytest.raises(dsparse.ComputeFailureError):
        ctx.synchronize()


def test_unregistered_opcode(monkeypatch):
    monkeypatch.delitem(KERNELS, OPCODE)
    ctx = runtime.create_context()
    with pytest.raises(dsparse.InvalidArgumentError):
        submit(ctx, 0)
    assert ctx.stream.issued == 0


def test_allocate():
    ctx = runtime.create_context()
    buffer = ctx.allocate(10)
    assert buffer.nbytes == 10
    assert buffer.dtype == np.uint8
    assert buffer.tag is None
    assert not ctx.to_host(buffer).any()
    with pytest.raises(dsparse.InvalidArgumentError):
        ctx.allocate(-1)


def test_to_host_copies():
    ctx = runtime.create_context()
    arr = ctx.to_device(np.arange(4.0))
    host = ctx.to_host(arr)
    host[0] = 10.0
    assert ctx.to_host(arr)[0] == 0.0
    with pytest.raises(dsparse.InvalidArgumentError):
        runtime.create_context().to_host(arr)


def test_context_names():
    a = runtime.create_context()
    b = runtime.create_context()
    assert a.name != b.name
    assert runtime.create_context("gpu").name == "gpu"


def test_host_value_pending(recorder):
    ctx = runtime.create_context()
    value = HostValue(1.5)
    assert value.ready and value.get() == 1.5
    value._event = submit(ctx, 0)
    assert not value.ready
    with pytest.raises(dsparse.InvalidStateError):
        value.get()
    ctx.synchronize()
    assert value.get() == 1.5
    value.set(2)
    assert value.get() == 2.0


def test_settings_from_environment(monkeypatch):
    monkeypatch.delenv("DSPARSE_SCRATCH_ALIGNMENT", raising=False)
    assert settings.scratch_alignment == 256
    names = [name for name, _ in settings.items()]
    assert "eager" in names and "sddmm_chunk_size" in names
    monkeypatch.setenv("DSPARSE_SCRATCH_ALIGNMENT", "64")
    assert settings.scratch_alignment == 64
    assert load_settings().scratch_alignment == 64


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_settings_reject_non_positive_ints(monkeypatch, value):
    monkeypatch.setenv("DSPARSE_SPVV_BLOCK_SIZE", value)
    with pytest.raises(ValidationError):
        settings.spvv_block_size


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("Yes", True), ("on", True), ("0", False), ("", False)],
)
def test_boolean_settings(monkeypatch, value, expected):
    monkeypatch.setenv("DSPARSE_CHECK_INDICES", value)
    assert settings.check_indices is expected


def test_boolean_settings_reject_garbage(monkeypatch):
    monkeypatch.setenv("DSPARSE_EAGER", "maybe")
    with pytest.raises(ValueError):
        settings.eager


def test_task_discarded_after_fault(recorder):
    ctx = runtime.create_context()
    first = submit(ctx, "boom")
    second = submit(ctx, 2)
    with pytest.raises(dsparse.ComputeFailureError):
        ctx.synchronize()
    assert first.failed and second.failed
    assert not second.done
    with pytest.raises(dsparse.ComputeFailureError):
        second.wait()
    assert recorder == []


def test_host_value_written_by_discarded_task(recorder):
    ctx = runtime.create_context()
    submit(ctx, "boom")
    value = HostValue(1.5)
    value._event = submit(ctx, 0)
    with pytest.raises(dsparse.ComputeFailureError):
        ctx.synchronize()
    assert not value.ready
    with pytest.raises(dsparse.ComputeFailureError):
        value.get()


def test_untyped_host_value():
    value = HostValue()
    assert value.dtype is None
    with pytest.raises(dsparse.InvalidStateError):
        value.get()
    value.bind(np.float32)
    value.bind(np.int8)
    assert value.dtype == np.float32 and value.get() == 0.0
    other = HostValue()
    other.set(2.5)
    assert other.dtype == np.float64 and other.get() == 2.5


def test_error_kinds():
    assert issubclass(dsparse.InvalidArgumentError, ValueError)
    assert issubclass(dsparse.InvalidStateError, dsparse.InvalidArgumentError)
    assert issubclass(dsparse.NotSupportedError, NotImplementedError)
    assert issubclass(dsparse.InsufficientResourcesError, MemoryError)
    assert dsparse.InvalidArgumentError.status == Status.INVALID_VALUE
    assert dsparse.NotSupportedError.status == Status.NOT_SUPPORTED
    assert (
        dsparse.InsufficientResourcesError.status
        == Status.INSUFFICIENT_RESOURCES
    )


if __name__ == "__main__":
    import sys

    sys.exit(pytest.main(sys.argv))
