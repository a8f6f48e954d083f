# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Tenancy-qualified service identifier."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TENANT: str = "default"


def namespace_or_default(name: str | None) -> str:
    return name or DEFAULT_TENANT


def partition_or_default(name: str | None) -> str:
    return name or DEFAULT_TENANT


class ModelIdentifier(BaseModel):
    """Service identity: name qualified by namespace and partition.

    Empty namespace/partition values normalise to ``default`` so identifiers
    compare equal regardless of whether multi-tenancy is enabled.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    namespace: str = DEFAULT_TENANT
    partition: str = DEFAULT_TENANT

    @field_validator("namespace", "partition", mode="before")
    @classmethod
    def _default_tenant(cls, value: object) -> object:
        if value is None or value == "":
            return DEFAULT_TENANT
        return value

    @property
    def id(self) -> str:
        """Dotted form used in cache keys and token descriptions."""
        return f"{self.partition}.{self.namespace}.{self.name}"

    def __str__(self) -> str:
        return f"{self.partition}/{self.namespace}/{self.name}"


__all__ = [
    "DEFAULT_TENANT",
    "ModelIdentifier",
    "namespace_or_default",
    "partition_or_default",
]
