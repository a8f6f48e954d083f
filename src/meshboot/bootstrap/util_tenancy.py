# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enterprise tenancy listing helpers.

Without enterprise features a single empty tenant is used, which the HTTP
client turns into "no tenancy query parameters".
"""

from __future__ import annotations

from meshboot.handlers import ConsulClient
from meshboot.models import ModelCatalogNode, ModelIdentifier


def partition_query_list(
    client: ConsulClient, enterprise: bool, partitions_disabled: bool = False
) -> list[str]:
    """Partitions to query; ``[""]`` when partitions are unavailable."""
    if not enterprise or partitions_disabled:
        return [""]
    return client.partition_list()


def tenant_query_list(
    client: ConsulClient, enterprise: bool, partitions_disabled: bool = False
) -> list[tuple[str, str]]:
    """Every ``(namespace, partition)`` pair to query."""
    if not enterprise:
        return [("", "")]
    out: list[tuple[str, str]] = []
    for partition in partition_query_list(client, enterprise, partitions_disabled):
        for namespace in client.namespace_list(partition=partition):
            out.append((namespace, partition))
    return out


def list_all_nodes(
    client: ConsulClient,
    datacenter: str,
    enterprise: bool,
    partitions_disabled: bool = False,
) -> list[ModelCatalogNode]:
    nodes: list[ModelCatalogNode] = []
    for partition in partition_query_list(client, enterprise, partitions_disabled):
        nodes.extend(client.catalog_nodes(datacenter=datacenter, partition=partition))
    return nodes


def list_all_services(
    client: ConsulClient, enterprise: bool, partitions_disabled: bool = False
) -> list[ModelIdentifier]:
    services: list[ModelIdentifier] = []
    for namespace, partition in tenant_query_list(client, enterprise, partitions_disabled):
        for name in sorted(client.catalog_services(namespace=namespace, partition=partition)):
            services.append(
                ModelIdentifier(name=name, namespace=namespace, partition=partition)
            )
    return services


__all__: list[str] = [
    "list_all_nodes",
    "list_all_services",
    "partition_query_list",
    "tenant_query_list",
]
