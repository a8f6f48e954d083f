# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Read-side catalog and health models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meshboot.enums import EnumCheckStatus
from meshboot.models.model_identifier import partition_or_default


class ModelCatalogNode(BaseModel):
    """A node as registered in the catalog."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    node: str = Field(..., alias="Node")
    partition: str = Field(default="", alias="Partition")
    tagged_addresses: dict[str, str] = Field(
        default_factory=dict, alias="TaggedAddresses"
    )

    @field_validator("tagged_addresses", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("partition", mode="before")
    @classmethod
    def _null_partition(cls, value: object) -> object:
        return "" if value is None else value


class ModelHealthInstance(BaseModel):
    """One service instance and the statuses of all of its checks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    node: str
    partition: str = ""
    statuses: list[EnumCheckStatus] = Field(default_factory=list)

    @classmethod
    def from_api(cls, entry: dict[str, Any]) -> ModelHealthInstance:
        node = entry.get("Node") or {}
        return cls(
            node=node.get("Node", ""),
            partition=node.get("Partition") or "",
            statuses=[
                EnumCheckStatus.parse(check.get("Status", ""))
                for check in entry.get("Checks") or []
            ],
        )

    @property
    def node_id(self) -> str:
        return f"{partition_or_default(self.partition)}/{self.node}"

    @property
    def overall_status(self) -> EnumCheckStatus:
        overall = EnumCheckStatus.PASSING
        for status in self.statuses:
            overall = EnumCheckStatus.worst(overall, status)
        return overall


__all__ = ["ModelCatalogNode", "ModelHealthInstance"]
