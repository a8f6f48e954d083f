# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Admin partition declared in configuration."""

from pydantic import BaseModel, ConfigDict, Field

from meshboot.models.model_identifier import DEFAULT_TENANT


class ModelPartition(BaseModel):
    """Admin partition and the namespaces that should exist inside it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = DEFAULT_TENANT
    namespaces: list[str] = Field(default_factory=list)

    @property
    def is_default(self) -> bool:
        return self.name in ("", DEFAULT_TENANT)

    def __str__(self) -> str:
        return self.name or DEFAULT_TENANT


__all__ = ["ModelPartition"]
