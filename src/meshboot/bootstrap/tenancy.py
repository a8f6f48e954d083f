# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enterprise multi-tenancy setup: admin partitions and namespaces.

Both steps converge the server onto the configured set: missing tenants are
created, unconfigured ones deleted. ``default`` is never deleted. Nothing
happens when enterprise features are disabled.
"""

from __future__ import annotations

import logging

from meshboot.bootstrap import util_acl
from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.handlers import ConsulClient
from meshboot.models import DEFAULT_TENANT, ModelACLPolicy, ModelPartition

logger = logging.getLogger(__name__)


class TenancyManager:
    """Creates configured partitions/namespaces and removes the rest."""

    def __init__(self, ctx: BootstrapContext) -> None:
        self._ctx = ctx

    def create_partitions(self, cluster: str, client: ConsulClient) -> None:
        if not self._ctx.enterprise:
            return
        with bootstrap_phase_error_context(
            "create_partitions", cluster=cluster, correlation_id=self._ctx.correlation_id
        ):
            current = set(client.partition_list())
            for partition in self._ctx.config.enterprise_partitions:
                if partition.name in current:
                    current.discard(partition.name)
                    continue
                if partition.is_default:
                    continue
                client.partition_create(partition.name)
                logger.info(
                    "Created partition",
                    extra=self._ctx.log_extra(cluster=cluster, partition=partition.name),
                )

            current.discard(DEFAULT_TENANT)
            for name in sorted(current):
                client.partition_delete(name)
                logger.info(
                    "Deleted partition",
                    extra=self._ctx.log_extra(cluster=cluster, partition=name),
                )

    def create_namespaces(self, cluster: str, client: ConsulClient) -> None:
        if not self._ctx.enterprise:
            return
        for partition in self._ctx.config.enterprise_partitions:
            with bootstrap_phase_error_context(
                "create_namespaces", cluster=cluster, correlation_id=self._ctx.correlation_id
            ):
                self._create_namespaces_for_partition(cluster, client, partition)

    def _create_namespaces_for_partition(
        self, cluster: str, client: ConsulClient, partition: ModelPartition
    ) -> None:
        # Catalog reads across namespace boundaries for every default-partition namespace.
        name = util_acl.CROSS_NAMESPACE_CATALOG_READ_POLICY_NAME
        policy = util_acl.create_or_update_policy(
            client,
            ModelACLPolicy(
                name=name,
                description=name,
                rules=util_acl.cross_namespace_catalog_read_rules(),
            ),
            partition=partition.name,
        )
        logger.info(
            "Cross-namespace catalog read policy updated",
            extra=self._ctx.log_extra(
                cluster=cluster, partition=str(partition), policy_id=policy.id
            ),
        )

        current = set(client.namespace_list(partition=partition.name))
        for namespace in partition.namespaces:
            if namespace in current:
                current.discard(namespace)
                continue
            client.namespace_create(
                namespace,
                partition=partition.name,
                default_policies=[name] if partition.is_default else None,
            )
            logger.info(
                "Created namespace",
                extra=self._ctx.log_extra(
                    cluster=cluster, namespace=namespace, partition=str(partition)
                ),
            )

        current.discard(DEFAULT_TENANT)
        for namespace in sorted(current):
            client.namespace_delete(namespace, partition=partition.name)
            logger.info(
                "Deleted namespace",
                extra=self._ctx.log_extra(
                    cluster=cluster, namespace=namespace, partition=str(partition)
                ),
            )


__all__: list[str] = ["TenancyManager"]
