# Copyright 2023 NVIDIA Corporation
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
#
from __future__ import annotations

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ("SparseRuntimeSettings", "load_settings", "settings")


class SparseRuntimeSettings(BaseSettings):
    """Runtime settings, read from ``DSPARSE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DSPARSE_", env_ignore_empty=True, frozen=True
    )

    eager: bool = Field(
        False,
        description="""
        Execute kernels at submission time instead of queueing them on the
        stream until the next synchronization. Submissions still return
        events and device faults are still reported at synchronization.
        """,
    )

    check_indices: bool = Field(
        False,
        description="""
        Validate sparse vector indices against the dense operand before
        submitting SpVV. Off by default because index validity is a caller
        obligation and the check reads the whole index array.
        """,
    )

    scratch_alignment: PositiveInt = Field(
        256,
        description="""
        Byte alignment of every section of a scratch buffer. Buffer size
        queries round each section up to this granularity.
        """,
    )

    spvv_block_size: PositiveInt = Field(
        256,
        description="""
        Number of non-zeros reduced into one partial sum by SpVV.
        """,
    )

    sddmm_chunk_size: PositiveInt = Field(
        4096,
        description="""
        Number of sampled entries whose dense rows are gathered at once by
        the SDDMM kernel. Bounds the kernel's temporary memory.
        """,
    )


def load_settings() -> SparseRuntimeSettings:
    return SparseRuntimeSettings()


class _CurrentSettings:
    """Reads the environment again on every attribute access, so a change
    made with ``monkeypatch.setenv`` applies to the next read.
    """

    def __getattr__(self, name):
        return getattr(load_settings(), name)

    def items(self):
        return list(load_settings().model_dump().items())


settings = _CurrentSettings()
