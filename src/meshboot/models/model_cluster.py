# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Named control-plane cluster (datacenter)."""

from pydantic import BaseModel, ConfigDict, Field


class ModelCluster(BaseModel):
    """A named control-plane instance.

    Attributes:
        name: Datacenter / cluster name
        primary: Whether this is the topology's designated primary
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    primary: bool = False


__all__ = ["ModelCluster"]
