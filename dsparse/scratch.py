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

from typing import NamedTuple

import numpy

from .config import Stage
from .errors import (
    InsufficientResourcesError,
    InvalidArgumentError,
    InvalidStateError,
)
from .runtime import DeviceArray
from .settings import settings
from .types import byte_ty
from .utils import align_up


class ScratchLayout:
    """Carves a caller-provided scratch buffer into typed sections.

    The same layout object answers the size query and produces the views
    the stages work on, so the two can never disagree. Every section starts
    on a ``settings.scratch_alignment`` boundary.
    """

    def __init__(self):
        self.sections: dict[str, tuple[int, numpy.dtype, int]] = {}
        self.nbytes = 0

    def add(self, name: str, dtype, count: int) -> "ScratchLayout":
        dtype = numpy.dtype(dtype)
        count = int(count)
        self.sections[name] = (self.nbytes, dtype, count)
        if count > 0:
            self.nbytes += align_up(
                count * dtype.itemsize, settings.scratch_alignment
            )
        return self

    def views(self, buffer: DeviceArray) -> dict[str, numpy.ndarray]:
        result = {}
        for name, (offset, dtype, count) in self.sections.items():
            if buffer is None:
                # Only valid for empty layouts, see check_buffer.
                result[name] = numpy.zeros((0,), dtype=dtype)
                continue
            raw = buffer.storage[offset : offset + count * dtype.itemsize]
            result[name] = raw.view(dtype)
        return result


class StageRecord(NamedTuple):
    routine: str
    stage: Stage
    signature: tuple


# check_buffer enforces the size contract of a scratch buffer before any
# stage touches it.
def check_buffer(ctx, buffer, required: int) -> None:
    if buffer is None:
        if required > 0:
            raise InvalidArgumentError(
                f"A scratch buffer of {required} bytes is required"
            )
        return
    if not isinstance(buffer, DeviceArray):
        raise InvalidArgumentError(
            f"Scratch buffer must be a DeviceArray, got "
            f"{type(buffer).__name__}"
        )
    if buffer.dtype != byte_ty:
        raise InvalidArgumentError(
            f"Scratch buffer must be a byte array, got {buffer.dtype}"
        )
    if buffer.context is not ctx:
        raise InvalidArgumentError(
            f"Scratch buffer lives on {buffer.context!r}, but the operation "
            f"was issued on {ctx!r}"
        )
    if buffer.nbytes < required:
        raise InsufficientResourcesError(
            f"Scratch buffer holds {buffer.nbytes} bytes, but {required} "
            "bytes are required"
        )


def stamp(buffer, routine: str, stage: Stage, signature: tuple) -> None:
    if buffer is not None:
        buffer.tag = StageRecord(routine, stage, signature)


# require_stage checks that the scratch buffer was last used by one of the
# given stages of this routine, for this exact operand configuration.
def require_stage(buffer, routine: str, stages, signature: tuple) -> None:
    record = buffer.tag if buffer is not None else None
    if not isinstance(record, StageRecord) or record.routine != routine:
        names = " or ".join(s.name.lower() for s in stages)
        raise InvalidStateError(
            f"{routine}: the scratch buffer has not been through the "
            f"{names} stage yet"
        )
    if record.signature != signature:
        raise InvalidArgumentError(
            f"{routine}: the scratch buffer was prepared for a different "
            f"operand configuration {record.signature}, not {signature}"
        )
    if record.stage not in stages:
        raise InvalidStateError(
            f"{routine}: the scratch buffer is in stage {record.stage.name}, "
            f"expected {' or '.join(s.name for s in stages)}"
        )
