# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""ACL token models (Consul JSON field names via aliases).

Security:
    ``secret_id`` is the bearer credential. It is excluded from ``repr`` so a
    token model can appear in log output and tracebacks without leaking it.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModelACLLink(BaseModel):
    """Reference to a policy by ID or name."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="ID")
    name: str = Field(default="", alias="Name")


class ModelACLServiceIdentity(BaseModel):
    """Synthetic service-identity policy attached to a token."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    service_name: str = Field(..., alias="ServiceName")
    datacenters: list[str] = Field(default_factory=list, alias="Datacenters")


class ModelACLToken(BaseModel):
    """An ACL token.

    Tokens are matched by ``description`` for create-or-update purposes; the
    accessor and secret IDs are empty on create and filled from the
    control plane's response.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    accessor_id: str = Field(default="", alias="AccessorID")
    secret_id: str = Field(default="", alias="SecretID", repr=False)
    description: str = Field(default="", alias="Description")
    local: bool = Field(default=False, alias="Local")
    policies: list[ModelACLLink] = Field(default_factory=list, alias="Policies")
    service_identities: list[ModelACLServiceIdentity] = Field(
        default_factory=list, alias="ServiceIdentities"
    )
    namespace: str = Field(default="", alias="Namespace")
    partition: str = Field(default="", alias="Partition")

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_defaults=True)


__all__ = ["ModelACLLink", "ModelACLServiceIdentity", "ModelACLToken"]
