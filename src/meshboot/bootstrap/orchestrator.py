# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Top-level bootstrap orchestrator.

Drives every cluster of a topology from "processes running" to "fully
operational and secured". Step order is fixed:

    1. Refuse to run before ``init``; validate the run mode
    2. Wait for a leader in every participating cluster
    3. ACL bootstrap: the primary (federation) or every cluster (peering);
       cached management tokens are dropped when ACLs are disabled
    4. Initialise each self-primary cluster: tenancy, replication token,
       mesh gateway and agent tokens, agent token injection, anonymous token,
       central config, then Kubernetes auth or service tokens
    5. Federation: initialise secondaries with credentials minted on the
       primary (deferred commits), then verify cross-datacenter KV writes
    6. Peering: peer every cluster with the primary
    7. Wait for every participating cluster to report a healthy catalog

Every step is idempotent, so a failed run is recovered by re-running it.

Example:
    >>> with ConsulClientProvider() as provider:
    ...     BootstrapOrchestrator(
    ...         topology, config, StoreCredentialCacheFilesystem("cache"), provider
    ...     ).run_bootstrap()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import UUID

from meshboot.bootstrap.acl_bootstrap import AclBootstrapper
from meshboot.bootstrap.auth_kubernetes import KubernetesAuthConfigurator
from meshboot.bootstrap.bootstrap_context import (
    MANAGEMENT_TOKEN_CACHE_NAME,
    BootstrapContext,
)
from meshboot.bootstrap.cluster_linker import ClusterLinker
from meshboot.bootstrap.config_entry_reconciler import ConfigEntryReconciler
from meshboot.bootstrap.convergence_waiters import ConvergenceWaiters
from meshboot.bootstrap.credential_issuer import CredentialIssuer
from meshboot.bootstrap.local_secrets import INIT_MARKER, RunOnceMarker
from meshboot.bootstrap.tenancy import TenancyManager
from meshboot.enums import EnumInfraTransportType
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError
from meshboot.handlers import ProtocolClientProvider
from meshboot.models import ModelBootstrapConfig, ModelIssueResult, ModelTopology
from meshboot.stores import ProtocolCredentialCache

logger = logging.getLogger(__name__)

MANAGEMENT_TOKEN_LIVE_NAME: str = "master"


class BootstrapOrchestrator:
    """Runs the fixed bootstrap sequence over a compiled topology."""

    def __init__(
        self,
        topology: ModelTopology,
        config: ModelBootstrapConfig,
        cache: ProtocolCredentialCache,
        provider: ProtocolClientProvider,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        correlation_id: UUID | None = None,
        marker: RunOnceMarker | None = None,
    ) -> None:
        self._ctx = BootstrapContext(
            topology,
            config,
            cache,
            provider,
            sleep=sleep,
            clock=clock,
            correlation_id=correlation_id,
        )
        self._marker = marker or RunOnceMarker(cache)
        self._waiters = ConvergenceWaiters(self._ctx)
        self._acl = AclBootstrapper(self._ctx, self._waiters)
        self._issuer = CredentialIssuer(self._ctx, self._waiters)
        self._linker = ClusterLinker(self._ctx)
        self._reconciler = ConfigEntryReconciler(self._ctx)
        self._tenancy = TenancyManager(self._ctx)
        self._kubernetes = KubernetesAuthConfigurator(self._ctx)

    @property
    def context(self) -> BootstrapContext:
        return self._ctx

    def run_bootstrap(self, primary_only: bool = False, deadline: float | None = None) -> None:
        """Bootstrap the whole topology.

        Args:
            primary_only: Only bootstrap the primary cluster (federation only).
            deadline: ``clock()`` value bounding the final health wait.

        Raises:
            ProtocolConfigurationError: ``init`` has not run, or the run mode
                does not fit the topology/configuration.
            BootstrapPhaseError: A phase failed against the control plane.
            MeshConvergenceTimeoutError: The final health wait hit ``deadline``.
        """
        ctx = self._ctx
        topology = ctx.topology
        primary = topology.primary_cluster.name

        self._marker.check_has_run_once(INIT_MARKER)
        self._validate_run_mode(primary_only)
        ctx.reset_run_state()

        if primary_only:
            ctx.skipped_clusters.update(
                c.name for c in topology.clusters if c.name != primary
            )
            logger.info(
                "Only bootstrapping the primary cluster",
                extra=ctx.log_extra(cluster=primary),
            )

        logger.info(
            "Bootstrap started",
            extra=ctx.log_extra(
                link_mode=topology.link_mode.value,
                clusters=[c.name for c in topology.clusters],
            ),
        )

        for cluster in self._participating_clusters():
            self._waiters.wait_for_leader(cluster, ctx.client_for_cluster(cluster))

        self._bootstrap_acls()

        if topology.link_with_federation:
            self._init_primary_cluster(primary, peered=False)
        else:
            for cluster in self._participating_clusters():
                self._init_primary_cluster(cluster, peered=True)

        if (
            not primary_only
            and topology.link_with_federation
            and len(topology.clusters) > 1
        ):
            self._init_secondary_clusters()

        if topology.link_with_peering:
            self._linker.peer_clusters()

        for cluster in self._participating_clusters():
            self._waiters.wait_for_completion(
                cluster, ctx.client_for_cluster(cluster), deadline=deadline
            )

        logger.info(
            "Bootstrap complete",
            extra=ctx.log_extra(registered_credentials=len(ctx.registry)),
        )

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    def _validate_run_mode(self, primary_only: bool) -> None:
        ctx = self._ctx
        if primary_only and not ctx.topology.link_with_federation:
            raise self._config_error(
                "primary boot mode only applies to traditional federation"
            )
        if ctx.acls_enabled and not ctx.config.secret_value("agent_master_token"):
            raise self._config_error(
                "agent master token is required when ACLs are enabled"
            )

    def _bootstrap_acls(self) -> None:
        ctx = self._ctx
        if not ctx.acls_enabled:
            ctx.cache.delete(MANAGEMENT_TOKEN_CACHE_NAME)
            ctx.cache.delete_prefix(f"{MANAGEMENT_TOKEN_CACHE_NAME}--")
            ctx.clear_management_tokens()
            logger.info("ACLs disabled; cached management tokens dropped", extra=ctx.log_extra())
            return

        if ctx.topology.link_with_federation:
            clusters = [ctx.topology.primary_cluster.name]
        else:
            clusters = self._participating_clusters()
        for cluster in clusters:
            self._acl.bootstrap(cluster, ctx.client_for_cluster(cluster))

    def _init_primary_cluster(self, cluster: str, peered: bool) -> None:
        """Initialise a cluster that mints its own credentials."""
        ctx = self._ctx
        client = ctx.client_for_cluster(cluster)
        extra = ctx.log_extra(cluster=cluster, peered=peered)
        logger.info("Initialising primary cluster", extra=extra)

        self._tenancy.create_partitions(cluster, client)
        self._tenancy.create_namespaces(cluster, client)

        if ctx.acls_enabled:
            if ctx.topology.link_with_federation:
                self._issuer.create_replication_token(cluster)
            self._issuer.create_mesh_gateway_token(cluster, cluster, peered)
            self._issuer.create_agent_tokens(cluster, cluster)

        self._waiters.inject_agent_tokens_and_wait_for_node_updates(
            cluster, client, list_all_partitions=True
        )

        if ctx.acls_enabled:
            self._issuer.create_anonymous_token(cluster)

        self._reconciler.reconcile(cluster, client)

        if ctx.acls_enabled:
            if ctx.config.kubernetes_enabled:
                if ctx.topology.link_with_peering:
                    raise self._config_error(
                        "the kubernetes auth mode is incompatible with peering",
                        target=cluster,
                    )
                self._kubernetes.initialize(cluster, client)
            else:
                self._issuer.create_service_tokens(cluster, cluster)

        logger.info("Primary cluster initialised", extra=extra)

    def _init_secondary_clusters(self) -> None:
        """Initialise federation secondaries from the primary."""
        ctx = self._ctx
        topology = ctx.topology
        primary = topology.primary_cluster.name

        if ctx.acls_enabled:
            self._linker.inject_replication_token()

        for cluster in topology.clusters:
            if cluster.primary:
                continue
            name = cluster.name
            extra = ctx.log_extra(cluster=name, primary=primary)
            logger.info("Initialising secondary cluster", extra=extra)

            # Minted on the primary; cached only once live in the secondary.
            pending: list[ModelIssueResult] = []
            if ctx.acls_enabled:
                pending.append(self._issuer.issue_mesh_gateway_token(primary, name, False))
                pending.append(self._issuer.issue_agent_tokens(primary, name))
                if ctx.config.kubernetes_enabled:
                    raise self._config_error(
                        "the kubernetes auth mode is incompatible with secondary datacenters",
                        target=name,
                    )
                pending.append(self._issuer.issue_service_tokens(primary, name))

                management = ctx.management_token(name)
                if management is not None:
                    self._waiters.wait_for_token_on_servers(
                        name, MANAGEMENT_TOKEN_LIVE_NAME, management.get_secret_value()
                    )
                for result in pending:
                    result.run_commit()

            self._waiters.inject_agent_tokens_and_wait_for_node_updates(
                name, ctx.client_for_cluster(name), list_all_partitions=False
            )
            logger.info("Secondary cluster initialised", extra=extra)

        for source in topology.clusters:
            for target in topology.clusters:
                if source.name == target.name:
                    continue
                self._waiters.wait_for_cross_datacenter_kv(
                    source.name, target.name, ctx.client_for_cluster(source.name)
                )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _participating_clusters(self) -> list[str]:
        return [
            c.name for c in self._ctx.topology.clusters if not self._ctx.is_skipped(c.name)
        ]

    def _config_error(
        self, message: str, target: str | None = None
    ) -> ProtocolConfigurationError:
        return ProtocolConfigurationError(
            message,
            context=ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.RUNTIME,
                operation="run_bootstrap",
                target_name=target,
                correlation_id=self._ctx.correlation_id,
            ),
        )


__all__: list[str] = ["MANAGEMENT_TOKEN_LIVE_NAME", "BootstrapOrchestrator"]
