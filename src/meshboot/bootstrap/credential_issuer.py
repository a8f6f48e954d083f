# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Credential issuance and deferred commit.

Credentials are minted through the API of one cluster (``from_cluster``) for
use in another (``for_cluster``). In federation mode secondaries receive
credentials minted on the primary, which only become usable in the secondary
once ACL replication has caught up. Issuance is therefore split in two:

    issue_*:  create-or-update the policy and token, record the secret in the
              credential registry, and return a ModelIssueResult
    commit:   wait until the secret is live on every server of
              ``for_cluster``, then write the durable cache copy (if any)

The ``create_*`` variants run both halves back to back for the same-cluster
case. Re-running never rotates a credential: tokens are matched by
description and keep their accessor and secret IDs.

Registry Keys:
    | Kind          | Scope                      | Cache name                          |
    |---------------|----------------------------|-------------------------------------|
    | replication   | ""                         | (none)                              |
    | mesh-gateway  | <for_cluster>              | mesh-gateway--<for_cluster>         |
    | agent         | <node name>                | (none)                              |
    | service       | <for_cluster>--<svc id>    | service--<for_cluster>--<svc id>    |
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from meshboot.bootstrap import util_acl
from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.convergence_waiters import ConvergenceWaiters
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.enums import EnumCredentialKind
from meshboot.models import (
    ModelACLLink,
    ModelACLPolicy,
    ModelACLServiceIdentity,
    ModelACLToken,
    ModelIssueResult,
    ModelService,
)

logger = logging.getLogger(__name__)


def _chain(commits: list[Callable[[], None]]) -> Callable[[], None]:
    def run_all() -> None:
        for commit in commits:
            commit()

    return run_all


class CredentialIssuer:
    """Mints replication, mesh-gateway, agent, service and anonymous tokens."""

    def __init__(self, ctx: BootstrapContext, waiters: ConvergenceWaiters) -> None:
        self._ctx = ctx
        self._waiters = waiters

    # ------------------------------------------------------------------ #
    # Replication
    # ------------------------------------------------------------------ #

    def create_replication_token(self, cluster: str) -> None:
        """Mint the ACL replication token on the primary (federation only)."""
        client = self._ctx.client_for_cluster(cluster)
        name = util_acl.REPLICATION_POLICY_NAME
        kind = EnumCredentialKind.REPLICATION

        with bootstrap_phase_error_context(
            "create_replication_token",
            cluster=cluster,
            credential_kind=kind,
            correlation_id=self._ctx.correlation_id,
        ):
            policy = util_acl.create_or_update_policy(
                client,
                ModelACLPolicy(
                    name=name,
                    description=name,
                    rules=util_acl.replication_policy_rules(self._ctx.enterprise),
                ),
            )
            token = util_acl.create_or_update_token(
                client,
                ModelACLToken(
                    description=name, policies=[ModelACLLink(id=policy.id)]
                ),
            )
        self._ctx.registry.set(kind, "", token.secret_id)
        logger.info(
            "Replication token issued",
            extra=self._ctx.log_extra(cluster=cluster, credential_kind=kind.value),
        )
        self._waiters.wait_for_token_on_servers(
            self._ctx.topology.primary_cluster.name, "replication", token.secret_id
        )

    # ------------------------------------------------------------------ #
    # Mesh gateway
    # ------------------------------------------------------------------ #

    def issue_mesh_gateway_token(
        self, from_cluster: str, for_cluster: str, peered: bool
    ) -> ModelIssueResult:
        client = self._ctx.client_for_cluster(from_cluster)
        name = f"mesh-gateway--{for_cluster}"
        kind = EnumCredentialKind.MESH_GATEWAY

        with bootstrap_phase_error_context(
            "issue_mesh_gateway_token",
            cluster=for_cluster,
            credential_kind=kind,
            correlation_id=self._ctx.correlation_id,
        ):
            policy = util_acl.create_or_update_policy(
                client,
                ModelACLPolicy(
                    name=name,
                    description=name,
                    rules=util_acl.mesh_gateway_policy_rules(
                        self._ctx.enterprise, peered
                    ),
                ),
            )
            token = util_acl.create_or_update_token(
                client,
                ModelACLToken(
                    description=name, policies=[ModelACLLink(id=policy.id)]
                ),
            )
        secret = token.secret_id
        self._ctx.registry.set(kind, for_cluster, secret)
        logger.info(
            "Mesh gateway token issued",
            extra=self._ctx.log_extra(cluster=for_cluster, token_name=name),
        )

        def commit() -> None:
            self._waiters.wait_for_token_on_servers(for_cluster, name, secret)
            self._ctx.cache.save(name, secret)
            logger.info(
                "Mesh gateway token written to cache",
                extra=self._ctx.log_extra(cluster=for_cluster, secret_name=name),
            )

        return ModelIssueResult(
            kind=kind,
            target_cluster=for_cluster,
            secrets={for_cluster: secret},
            commit=commit,
        )

    def create_mesh_gateway_token(
        self, from_cluster: str, for_cluster: str, peered: bool
    ) -> None:
        self.issue_mesh_gateway_token(from_cluster, for_cluster, peered).run_commit()

    # ------------------------------------------------------------------ #
    # Agents
    # ------------------------------------------------------------------ #

    def issue_agent_tokens(self, from_cluster: str, for_cluster: str) -> ModelIssueResult:
        """One policy and token per agent node (servers and clients)."""
        client = self._ctx.client_for_cluster(from_cluster)
        kind = EnumCredentialKind.AGENT
        secrets: dict[str, str] = {}
        commits: list[Callable[[], None]] = []

        with bootstrap_phase_error_context(
            "issue_agent_tokens",
            cluster=for_cluster,
            credential_kind=kind,
            correlation_id=self._ctx.correlation_id,
        ):
            for node in self._ctx.topology.cluster_nodes(for_cluster):
                if not node.is_agent:
                    continue
                policy_name = node.token_name
                util_acl.create_or_update_policy(
                    client,
                    ModelACLPolicy(
                        name=policy_name,
                        description=policy_name,
                        rules=util_acl.agent_policy_rules(node, self._ctx.enterprise),
                    ),
                )
                token = util_acl.create_or_update_token(
                    client,
                    ModelACLToken(
                        description=node.token_name,
                        policies=[ModelACLLink(name=policy_name)],
                    ),
                )
                secrets[node.name] = token.secret_id
                commits.append(self._wait_live(for_cluster, node.token_name, token.secret_id))
                logger.info(
                    "Agent token issued",
                    extra=self._ctx.log_extra(
                        cluster=for_cluster, node=node.name, partition=node.partition
                    ),
                )

        self._ctx.registry.set_many(kind, secrets)
        return ModelIssueResult(
            kind=kind, target_cluster=for_cluster, secrets=secrets, commit=_chain(commits)
        )

    def create_agent_tokens(self, from_cluster: str, for_cluster: str) -> None:
        self.issue_agent_tokens(from_cluster, for_cluster).run_commit()

    # ------------------------------------------------------------------ #
    # Services
    # ------------------------------------------------------------------ #

    def issue_service_tokens(self, from_cluster: str, for_cluster: str) -> ModelIssueResult:
        """One service-identity token per distinct service in ``for_cluster``."""
        client = self._ctx.client_for_cluster(from_cluster)
        kind = EnumCredentialKind.SERVICE
        secrets: dict[str, str] = {}
        commits: list[Callable[[], None]] = []

        with bootstrap_phase_error_context(
            "issue_service_tokens",
            cluster=for_cluster,
            credential_kind=kind,
            correlation_id=self._ctx.correlation_id,
        ):
            for service in self._services_of(for_cluster):
                scope = f"{for_cluster}--{service.id.id}"
                name = f"service--{scope}"
                token = ModelACLToken(
                    description=name,
                    service_identities=[
                        ModelACLServiceIdentity(service_name=service.id.name)
                    ],
                )
                if self._ctx.enterprise:
                    token = token.model_copy(
                        update={
                            "namespace": service.id.namespace,
                            "partition": service.id.partition,
                        }
                    )
                token = util_acl.create_or_update_token(client, token)
                secrets[scope] = token.secret_id
                commits.append(self._wait_live_and_cache(for_cluster, name, token.secret_id))
                logger.info(
                    "Service token issued",
                    extra=self._ctx.log_extra(
                        cluster=for_cluster,
                        service=service.id.name,
                        namespace=service.id.namespace,
                        partition=service.id.partition,
                    ),
                )

        self._ctx.registry.set_many(kind, secrets)
        return ModelIssueResult(
            kind=kind, target_cluster=for_cluster, secrets=secrets, commit=_chain(commits)
        )

    def create_service_tokens(self, from_cluster: str, for_cluster: str) -> None:
        self.issue_service_tokens(from_cluster, for_cluster).run_commit()

    def _services_of(self, cluster: str) -> list[ModelService]:
        seen: set[str] = set()
        services: list[ModelService] = []
        for node in self._ctx.topology.cluster_nodes(cluster):
            if node.service is None or node.service.id.id in seen:
                continue
            seen.add(node.service.id.id)
            services.append(node.service)
        return services

    # ------------------------------------------------------------------ #
    # Anonymous
    # ------------------------------------------------------------------ #

    def create_anonymous_token(self, cluster: str) -> None:
        """Grant the built-in anonymous token catalog read access."""
        client = self._ctx.client_for_cluster(cluster)
        name = util_acl.ANONYMOUS_POLICY_NAME

        with bootstrap_phase_error_context(
            "create_anonymous_token", cluster=cluster, correlation_id=self._ctx.correlation_id
        ):
            policy = util_acl.create_or_update_policy(
                client,
                ModelACLPolicy(
                    name=name,
                    description=name,
                    rules=util_acl.anonymous_policy_rules(self._ctx.enterprise),
                ),
            )
            logger.info(
                "Anonymous policy updated",
                extra=self._ctx.log_extra(cluster=cluster, policy_id=policy.id),
            )
            util_acl.create_or_update_token(
                client,
                ModelACLToken(
                    accessor_id=util_acl.ANONYMOUS_TOKEN_ACCESSOR_ID,
                    description=name,
                    policies=[ModelACLLink(name=name)],
                ),
            )
        logger.info("Anonymous token updated", extra=self._ctx.log_extra(cluster=cluster))

    # ------------------------------------------------------------------ #
    # Commit steps
    # ------------------------------------------------------------------ #

    def _wait_live(self, cluster: str, token_name: str, secret: str) -> Callable[[], None]:
        def commit() -> None:
            self._waiters.wait_for_token_on_servers(cluster, token_name, secret)

        return commit

    def _wait_live_and_cache(
        self, cluster: str, cache_name: str, secret: str
    ) -> Callable[[], None]:
        def commit() -> None:
            self._waiters.wait_for_token_on_servers(cluster, cache_name, secret)
            self._ctx.cache.save(cache_name, secret)

        return commit


__all__: list[str] = ["CredentialIssuer"]
