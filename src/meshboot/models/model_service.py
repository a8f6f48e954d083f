# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Application service bound to a topology node."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from meshboot.models.model_identifier import ModelIdentifier


class ModelService(BaseModel):
    """Service identity plus its single upstream.

    Attributes:
        id: Service identifier
        port: Service port on the node
        upstream_id: Identifier of the service this one calls
        upstream_peer: Peer name when the upstream lives in a peered cluster
        upstream_datacenter: Datacenter when the upstream lives in a federated DC
        upstream_local_port: Local listener port for the upstream
        meta: Service metadata
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: ModelIdentifier
    port: int = 0
    upstream_id: ModelIdentifier | None = None
    upstream_peer: str = ""
    upstream_datacenter: str = ""
    upstream_local_port: int = 0
    meta: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _upstream_locality_exclusive(self) -> ModelService:
        if self.upstream_peer and self.upstream_datacenter:
            raise ValueError(
                "upstream_peer and upstream_datacenter are mutually exclusive"
            )
        return self


__all__ = ["ModelService"]
