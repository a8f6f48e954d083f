# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""ACL policy model (Consul JSON field names via aliases)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelACLPolicy(BaseModel):
    """An ACL policy. ``id`` is empty until the control plane assigns one."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="ID")
    name: str = Field(..., alias="Name")
    description: str = Field(default="", alias="Description")
    rules: str = Field(default="", alias="Rules")

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_defaults=True)


__all__ = ["ModelACLPolicy"]
