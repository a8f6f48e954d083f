# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Topology node model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from meshboot.enums import EnumInfraTransportType, EnumNodeKind
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError
from meshboot.models.model_identifier import DEFAULT_TENANT
from meshboot.models.model_service import ModelService

LAN_NETWORK: str = "lan"
WAN_NETWORK: str = "wan"


class ModelAddress(BaseModel):
    """One IP address of a node on a named network."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    network: str
    ip_address: str


class ModelNode(BaseModel):
    """A member of a cluster, produced by the topology compiler.

    Nodes are read-only to the orchestrator.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cluster: str
    name: str
    kind: EnumNodeKind
    partition: str = DEFAULT_TENANT
    addresses: list[ModelAddress] = Field(default_factory=list)
    service: ModelService | None = None
    mesh_gateway: bool = False

    @property
    def pod_name(self) -> str:
        """Name the node registers under in the catalog."""
        return f"{self.name}-pod"

    @property
    def token_name(self) -> str:
        return f"agent--{self.name}"

    @property
    def is_server(self) -> bool:
        return self.kind == EnumNodeKind.SERVER

    @property
    def is_agent(self) -> bool:
        return self.kind in (EnumNodeKind.SERVER, EnumNodeKind.CLIENT)

    @property
    def local_address(self) -> str:
        for address in self.addresses:
            if address.network in (self.cluster, LAN_NETWORK):
                return address.ip_address
        raise self._missing_address("local")

    @property
    def public_address(self) -> str:
        for address in self.addresses:
            if address.network == WAN_NETWORK:
                return address.ip_address
        raise self._missing_address("public")

    def _missing_address(self, which: str) -> ProtocolConfigurationError:
        context = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="resolve_address",
            target_name=self.name,
        )
        return ProtocolConfigurationError(
            f"node {self.name} has no {which} address",
            context=context,
            cluster=self.cluster,
        )


__all__ = ["LAN_NETWORK", "WAN_NETWORK", "ModelAddress", "ModelNode"]
