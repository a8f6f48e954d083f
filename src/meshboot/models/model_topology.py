# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Compiled topology consumed by the orchestrator.

The topology compiler lives outside meshboot; this model is the read-only
inventory it produces, plus the lookups the orchestrator needs:

    - ordered walk over nodes (infra, then servers, then clients/dataplanes,
      each group sorted by name)
    - per-cluster server addresses and leader address
    - per-cluster mesh gateway addresses
    - linking-mode flags and the primary cluster
"""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator

from meshboot.enums import EnumClusterLinkMode, EnumInfraTransportType, EnumNodeKind
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError
from meshboot.models.model_cluster import ModelCluster
from meshboot.models.model_node import ModelNode

MESH_GATEWAY_PORT: int = 8443

_WALK_GROUPS: tuple[tuple[EnumNodeKind, ...], ...] = (
    (EnumNodeKind.INFRA,),
    (EnumNodeKind.SERVER,),
    (EnumNodeKind.CLIENT, EnumNodeKind.DATAPLANE),
)


class ModelTopology(BaseModel):
    """Node/cluster inventory with the lookups the orchestrator consumes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    link_mode: EnumClusterLinkMode = EnumClusterLinkMode.FEDERATE
    clusters: list[ModelCluster] = Field(..., min_length=1)
    nodes: list[ModelNode] = Field(default_factory=list)
    additional_primary_gateways: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_inventory(self) -> ModelTopology:
        names = [c.name for c in self.clusters]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate cluster names: {sorted(names)}")

        primaries = [c.name for c in self.clusters if c.primary]
        if len(primaries) != 1:
            raise ValueError(
                f"exactly one primary cluster is required, found {len(primaries)}"
            )

        known = set(names)
        seen_nodes: set[str] = set()
        for node in self.nodes:
            if node.cluster not in known:
                raise ValueError(
                    f"node {node.name} references unknown cluster {node.cluster}"
                )
            if node.name in seen_nodes:
                raise ValueError(f"duplicate node name: {node.name}")
            seen_nodes.add(node.name)
        return self

    @property
    def link_with_federation(self) -> bool:
        return self.link_mode == EnumClusterLinkMode.FEDERATE

    @property
    def link_with_peering(self) -> bool:
        return self.link_mode == EnumClusterLinkMode.PEER

    @property
    def primary_cluster(self) -> ModelCluster:
        for cluster in self.clusters:
            if cluster.primary:
                return cluster
        raise AssertionError("validated topology always has a primary")

    def cluster(self, name: str) -> ModelCluster:
        for cluster in self.clusters:
            if cluster.name == name:
                return cluster
        raise self._lookup_error(f"no such cluster: {name}", name)

    def node(self, name: str) -> ModelNode:
        for node in self.nodes:
            if node.name == name:
                return node
        raise self._lookup_error(f"node not found: {name}", name)

    def walk(self) -> Iterator[ModelNode]:
        """Yield every node in deterministic topology order."""
        for kinds in _WALK_GROUPS:
            group = [n for n in self.nodes if n.kind in kinds]
            yield from sorted(group, key=lambda n: n.name)

    def cluster_nodes(self, cluster: str) -> list[ModelNode]:
        return [n for n in self.walk() if n.cluster == cluster]

    def servers(self, cluster: str) -> list[ModelNode]:
        return [n for n in self.cluster_nodes(cluster) if n.is_server]

    def server_addresses(self, cluster: str) -> list[str]:
        return [n.local_address for n in self.servers(cluster)]

    def leader_address(self, cluster: str, wan: bool = False) -> str:
        """Address of the first server of the cluster (sorted by name)."""
        servers = self.servers(cluster)
        if not servers:
            raise self._lookup_error(f"cluster {cluster} has no servers", cluster)
        first = servers[0]
        return first.public_address if wan else first.local_address

    def gateway_addresses(self, cluster: str) -> list[str]:
        out = [
            f"{n.public_address}:{MESH_GATEWAY_PORT}"
            for n in self.cluster_nodes(cluster)
            if n.mesh_gateway
            and n.kind in (EnumNodeKind.CLIENT, EnumNodeKind.DATAPLANE)
        ]
        if self.cluster(cluster).primary:
            out.extend(self.additional_primary_gateways)
        return out

    def _lookup_error(self, message: str, target: str) -> ProtocolConfigurationError:
        context = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.RUNTIME,
            operation="topology_lookup",
            target_name=target,
        )
        return ProtocolConfigurationError(message, context=context)


__all__ = ["MESH_GATEWAY_PORT", "ModelTopology"]
