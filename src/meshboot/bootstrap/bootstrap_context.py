# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared state of one bootstrap run.

Every bootstrap component receives the same BootstrapContext. It bundles the
read-only inputs (topology, configuration), the collaborators (credential
cache, client provider), the run-scoped state (credential registry,
management tokens) and the injectable ``sleep``/``clock`` used by all waits.

Management Tokens:
    In federation mode the primary's management token is valid everywhere
    once replicated, so every cluster resolves to it. In peering mode each
    cluster was bootstrapped independently and has its own token.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from uuid import UUID, uuid4

from pydantic import SecretStr

from meshboot.bootstrap.registry_credential import CredentialRegistry
from meshboot.enums import EnumCredentialKind
from meshboot.handlers import ConsulClient, ProtocolClientProvider
from meshboot.models import ModelBootstrapConfig, ModelNode, ModelTopology
from meshboot.stores import ProtocolCredentialCache

logger = logging.getLogger(__name__)

MANAGEMENT_TOKEN_CACHE_NAME: str = "master-token"


class BootstrapContext:
    """Inputs, collaborators and run-scoped state shared by bootstrap steps."""

    def __init__(
        self,
        topology: ModelTopology,
        config: ModelBootstrapConfig,
        cache: ProtocolCredentialCache,
        provider: ProtocolClientProvider,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        correlation_id: UUID | None = None,
    ) -> None:
        self.topology = topology
        self.config = config
        self.cache = cache
        self.provider = provider
        self.sleep = sleep
        self.clock = clock
        self.correlation_id = correlation_id or uuid4()
        self.registry = CredentialRegistry()
        self.skipped_clusters: set[str] = set()
        self._management_tokens: dict[str, SecretStr] = {}

    # ------------------------------------------------------------------ #
    # Management tokens
    # ------------------------------------------------------------------ #

    def management_token_cache_name(self, cluster: str) -> str:
        """Cache name of a cluster's management token.

        The primary (and every cluster in federation mode) uses
        ``master-token``; peered non-primary clusters use
        ``master-token--<cluster>``.
        """
        if self.topology.link_with_peering and cluster != self.topology.primary_cluster.name:
            return f"{MANAGEMENT_TOKEN_CACHE_NAME}--{cluster}"
        return MANAGEMENT_TOKEN_CACHE_NAME

    def management_token(self, cluster: str) -> SecretStr | None:
        if self.topology.link_with_federation:
            cluster = self.topology.primary_cluster.name
        return self._management_tokens.get(cluster)

    def set_management_token(self, cluster: str, secret: str) -> None:
        self._management_tokens[cluster] = SecretStr(secret)

    def clear_management_tokens(self) -> None:
        self._management_tokens.clear()

    def reset_run_state(self) -> None:
        """Start a run with an empty registry, no skipped clusters and no tokens."""
        self.registry = CredentialRegistry()
        self.skipped_clusters.clear()
        self.clear_management_tokens()

    # ------------------------------------------------------------------ #
    # Clients
    # ------------------------------------------------------------------ #

    def client_for_cluster(self, cluster: str) -> ConsulClient:
        """Client for the cluster's leader, authenticated once bootstrapped."""
        return self.provider.get_client(
            self.topology.leader_address(cluster), self.management_token(cluster)
        )

    def server_client(self, node: ModelNode) -> ConsulClient:
        """Unauthenticated client pinned to one server; tokens are per-request."""
        return self.provider.get_client(node.local_address)

    def agent_client(self, node: ModelNode) -> ConsulClient:
        """Client pinned to one agent, authenticated with the agent master token."""
        secret = self.config.secret_value("agent_master_token")
        return self.provider.get_client(
            node.local_address, SecretStr(secret) if secret else None
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @property
    def acls_enabled(self) -> bool:
        return self.config.acls_enabled

    @property
    def enterprise(self) -> bool:
        return self.config.enterprise_enabled

    def is_skipped(self, cluster: str) -> bool:
        return cluster in self.skipped_clusters

    def log_extra(self, **fields: object) -> dict[str, object]:
        """Structured logging context carrying the run correlation ID."""
        return {"correlation_id": str(self.correlation_id), **fields}

    def agent_secret(self, node: ModelNode) -> SecretStr:
        return self.registry.must_get(EnumCredentialKind.AGENT, node.name)


__all__: list[str] = ["MANAGEMENT_TOKEN_CACHE_NAME", "BootstrapContext"]
