# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Inter-cluster linking: WAN federation replication and cluster peering."""

from __future__ import annotations

import logging

from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.convergence_waiters import TOKEN_POLL_INTERVAL_SECONDS
from meshboot.bootstrap.predicates import is_acl_not_found
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.bootstrap.util_polling import poll_until
from meshboot.enums import EnumCredentialKind, EnumInfraTransportType
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError

logger = logging.getLogger(__name__)


def peer_name(cluster: str) -> str:
    return f"peer-{cluster}"


class ClusterLinker:
    """Links clusters together once each has been bootstrapped."""

    def __init__(self, ctx: BootstrapContext) -> None:
        self._ctx = ctx

    def inject_replication_token(self) -> None:
        """Install the replication token on every non-primary server.

        Servers of a secondary may not know the token yet while replication
        warms up; ``403 (ACL not found)`` is retried every 250 ms.
        """
        topology = self._ctx.topology
        if not topology.link_with_federation:
            raise ProtocolConfigurationError(
                f"unsupported link_mode={topology.link_mode.value!r} here",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.RUNTIME,
                    operation="inject_replication_token",
                    correlation_id=self._ctx.correlation_id,
                ),
            )
        secret = self._ctx.registry.must_get(EnumCredentialKind.REPLICATION)
        primary = topology.primary_cluster.name

        for node in topology.walk():
            if node.cluster == primary or not node.is_server:
                continue
            client = self._ctx.agent_client(node)
            extra = self._ctx.log_extra(cluster=node.cluster, node=node.name)

            def update_replication_token() -> bool:
                client.agent_update_token("replication", secret)
                return True

            with bootstrap_phase_error_context(
                "inject_replication_token",
                cluster=node.cluster,
                credential_kind=EnumCredentialKind.REPLICATION,
                correlation_id=self._ctx.correlation_id,
            ):
                poll_until(
                    update_replication_token,
                    TOKEN_POLL_INTERVAL_SECONDS,
                    is_transient=is_acl_not_found,
                    description=f"replication token on {node.name}",
                    sleep=self._ctx.sleep,
                    clock=self._ctx.clock,
                    log_extra=extra,
                )
            logger.info("Agent was given its replication token", extra=extra)

    def peer_clusters(self) -> None:
        """Peer every non-primary cluster with the primary.

        A pair is left untouched when both directions already exist
        (``peer-<cluster>`` on the primary and ``peer-<primary>`` on the
        cluster); otherwise a token is generated on the primary and
        established on the cluster.
        """
        primary = self._ctx.topology.primary_cluster.name
        primary_client = self._ctx.client_for_cluster(primary)

        for cluster in self._ctx.topology.clusters:
            if cluster.name == primary:
                continue
            target_client = self._ctx.client_for_cluster(cluster.name)
            extra = self._ctx.log_extra(cluster=cluster.name, primary=primary)

            with bootstrap_phase_error_context(
                "peer_clusters", cluster=cluster.name, correlation_id=self._ctx.correlation_id
            ):
                has_primary_side = primary_client.peering_read(peer_name(cluster.name)) is not None
                has_reverse_side = target_client.peering_read(peer_name(primary)) is not None
                if has_primary_side and has_reverse_side:
                    logger.info("Clusters already peered", extra=extra)
                    continue

                token = primary_client.peering_generate_token(peer_name(cluster.name))
                target_client.peering_establish(peer_name(primary), token)
            logger.info("Clusters peered", extra=extra)


__all__: list[str] = ["ClusterLinker", "peer_name"]
