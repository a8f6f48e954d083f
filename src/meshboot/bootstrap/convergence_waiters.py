# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Convergence waiters.

Blocking polls that hold the orchestrator until the control plane has caught
up with what was just written. All of them are built on ``poll_until`` with a
fixed interval:

    | Waiter                                         | Interval | Bounded |
    |------------------------------------------------|----------|---------|
    | wait_for_leader                                | 500 ms   | no      |
    | wait_for_token_on_servers                      | 250 ms   | no      |
    | inject_agent_tokens_and_wait_for_node_updates  | 5 s      | no      |
    | wait_for_cross_datacenter_kv                   | 500 ms   | no      |
    | wait_for_completion                            | 500 ms   | yes     |

Only the final health wait honours a deadline; every other wait relies on
the control plane eventually converging.
"""

from __future__ import annotations

import logging

from pydantic import SecretStr

from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.bootstrap.util_polling import poll_until
from meshboot.bootstrap.util_tenancy import list_all_nodes, list_all_services
from meshboot.enums import EnumCheckStatus, EnumInfraTransportType
from meshboot.errors import (
    InfraConsulError,
    MeshConvergenceTimeoutError,
    ModelInfraErrorContext,
    RuntimeHostError,
)
from meshboot.handlers import ConsulClient
from meshboot.models import ModelCatalogNode
from meshboot.utils import sanitize_error_message

logger = logging.getLogger(__name__)

LEADER_POLL_INTERVAL_SECONDS: float = 0.5
TOKEN_POLL_INTERVAL_SECONDS: float = 0.25
NODE_UPDATE_POLL_INTERVAL_SECONDS: float = 5.0
KV_POLL_INTERVAL_SECONDS: float = 0.5
COMPLETION_POLL_INTERVAL_SECONDS: float = 0.5

LOCAL_TEST_KEY: str = "local-test"


def _is_infra_error(error: BaseException) -> bool:
    return isinstance(error, RuntimeHostError)


def _is_client_status(status_code: int | None) -> bool:
    """A 4xx answer: the server is up but refused the request as sent."""
    return status_code is not None and 400 <= status_code < 500


class ConvergenceWaiters:
    """Polling loops that wait for the control plane to converge."""

    def __init__(self, ctx: BootstrapContext) -> None:
        self._ctx = ctx

    def wait_for_leader(self, cluster: str, client: ConsulClient) -> str:
        """Block until the cluster reports a leader; returns its address."""
        leader = ""

        def has_leader() -> bool:
            nonlocal leader
            leader = client.status_leader()
            if not leader:
                logger.info(
                    "Cluster has no leader yet",
                    extra=self._ctx.log_extra(cluster=cluster),
                )
            return bool(leader)

        def leader_check_failed(error: BaseException) -> bool:
            if isinstance(error, InfraConsulError) and _is_client_status(error.status_code):
                logger.warning(
                    "Leader check rejected; verify the API scheme and port",
                    extra=self._ctx.log_extra(
                        cluster=cluster,
                        status_code=error.status_code,
                        consul_path=error.model.context.get("consul_path"),
                    ),
                )
            return _is_infra_error(error)

        poll_until(
            has_leader,
            LEADER_POLL_INTERVAL_SECONDS,
            is_transient=leader_check_failed,
            description=f"leader election in {cluster}",
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
            log_extra=self._ctx.log_extra(cluster=cluster),
        )
        logger.info(
            "Cluster has leader",
            extra=self._ctx.log_extra(cluster=cluster, leader_addr=leader),
        )
        return leader

    def wait_for_token_on_servers(
        self, cluster: str, token_name: str, secret: str
    ) -> None:
        """Block until every server of ``cluster`` resolves ``secret``.

        Each server is asked directly, with stale reads allowed, so a success
        proves the token has replicated to that server. No-op when ACLs are
        disabled or the name/secret is empty.
        """
        if not self._ctx.acls_enabled or not token_name or not secret:
            return

        presented = SecretStr(secret)
        start = self._ctx.clock()
        for server in self._ctx.topology.servers(cluster):
            client = self._ctx.server_client(server)
            extra = self._ctx.log_extra(
                cluster=cluster, server=server.name, token_name=token_name
            )

            def token_is_live() -> bool:
                try:
                    client.acl_token_read_self(token=presented, stale=True)
                except RuntimeHostError as e:
                    logger.debug(
                        "Token not ready on server",
                        extra={**extra, "error": sanitize_error_message(e, [secret])},
                    )
                    return False
                return True

            poll_until(
                token_is_live,
                TOKEN_POLL_INTERVAL_SECONDS,
                description=f"token {token_name} on {server.name}",
                sleep=self._ctx.sleep,
                clock=self._ctx.clock,
            )
            logger.info(
                "Token ready on server",
                extra={**extra, "elapsed_seconds": self._ctx.clock() - start},
            )

    def inject_agent_tokens(self, cluster: str) -> None:
        """Install each agent's registered token into the agent itself."""
        for node in self._ctx.topology.cluster_nodes(cluster):
            if not node.is_agent:
                continue
            secret = self._ctx.agent_secret(node)
            self._ctx.agent_client(node).agent_update_token("agent", secret)
            logger.info(
                "Agent was given its token",
                extra=self._ctx.log_extra(cluster=cluster, node=node.name),
            )

    def inject_agent_tokens_and_wait_for_node_updates(
        self, cluster: str, client: ConsulClient, list_all_partitions: bool
    ) -> None:
        """Re-inject agent tokens until every agent has synced its node entry.

        Injecting a token prompts the agent to run anti-entropy, which posts
        its tagged addresses to the catalog. An agent is a straggler while
        its catalog entry (by pod name) is missing or has no tagged addresses.

        Args:
            cluster: Cluster whose agents are checked.
            client: Authenticated client for the cluster.
            list_all_partitions: List nodes across every partition
                (enterprise primaries); otherwise a plain listing is used,
                where a listing error counts as an empty catalog.
        """

        def all_nodes_updated() -> bool:
            if self._ctx.acls_enabled:
                with bootstrap_phase_error_context(
                    "inject_agent_tokens",
                    cluster=cluster,
                    correlation_id=self._ctx.correlation_id,
                ):
                    self.inject_agent_tokens(cluster)

            stragglers = self.determine_node_update_stragglers(
                self._list_catalog_nodes(cluster, client, list_all_partitions), cluster
            )
            if not stragglers:
                return True
            logger.info(
                "Not all agent nodes have posted node updates yet",
                extra=self._ctx.log_extra(cluster=cluster, nodes=stragglers),
            )
            return False

        poll_until(
            all_nodes_updated,
            NODE_UPDATE_POLL_INTERVAL_SECONDS,
            description=f"agent node updates in {cluster}",
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
        )
        logger.info(
            "All agent nodes have posted node updates",
            extra=self._ctx.log_extra(cluster=cluster),
        )

    def _list_catalog_nodes(
        self, cluster: str, client: ConsulClient, list_all_partitions: bool
    ) -> list[ModelCatalogNode]:
        if self._ctx.enterprise and list_all_partitions:
            with bootstrap_phase_error_context(
                "list_all_nodes", cluster=cluster, correlation_id=self._ctx.correlation_id
            ):
                return list_all_nodes(
                    client,
                    cluster,
                    self._ctx.enterprise,
                    self._ctx.config.enterprise_disable_partitions,
                )
        try:
            return client.catalog_nodes()
        except RuntimeHostError as e:
            logger.debug(
                "Catalog node listing failed",
                extra=self._ctx.log_extra(cluster=cluster, error=sanitize_error_message(e)),
            )
            return []

    def determine_node_update_stragglers(
        self, nodes: list[ModelCatalogNode], cluster: str
    ) -> list[str]:
        by_name = {n.node: n for n in nodes}
        stragglers: list[str] = []
        for node in self._ctx.topology.cluster_nodes(cluster):
            if not node.is_agent:
                continue
            entry = by_name.get(node.pod_name)
            if entry is not None and entry.tagged_addresses:
                continue
            stragglers.append(node.name)
        return stragglers

    def wait_for_cross_datacenter_kv(
        self, from_cluster: str, to_cluster: str, client: ConsulClient
    ) -> None:
        """Block until a KV write from ``from_cluster`` lands in ``to_cluster``."""
        key = f"test-from-{from_cluster}-to-{to_cluster}"
        value = f"payload-for-{from_cluster}-to-{to_cluster}"
        extra = self._ctx.log_extra(from_cluster=from_cluster, to_cluster=to_cluster)

        def kv_write() -> bool:
            try:
                client.kv_put(key, value, datacenter=to_cluster)
            except RuntimeHostError as e:
                logger.warning(
                    "KV write failed; WAN not converged yet",
                    extra={**extra, "error": sanitize_error_message(e)},
                )
                return False
            return True

        poll_until(
            kv_write,
            KV_POLL_INTERVAL_SECONDS,
            description=f"cross-datacenter kv {from_cluster}->{to_cluster}",
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
        )
        logger.info("KV write success", extra=extra)

    def wait_for_completion(
        self, cluster: str, client: ConsulClient, deadline: float | None = None
    ) -> None:
        """Block until the cluster accepts writes and every instance passes.

        Stage 1 writes ``local-test`` until it succeeds. Stage 2 scans the
        health of every service instance until none is worse than passing.

        Raises:
            MeshConvergenceTimeoutError: ``deadline`` (a ``clock()`` value)
                passed before both stages completed.
        """
        extra = self._ctx.log_extra(cluster=cluster)
        last_failure = ""

        def timed_out() -> MeshConvergenceTimeoutError:
            return MeshConvergenceTimeoutError(
                f"mesh in {cluster} did not converge before the deadline"
                + (f": {last_failure}" if last_failure else ""),
                cluster=cluster,
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.CONSUL,
                    operation="wait_for_completion",
                    target_name=cluster,
                    correlation_id=self._ctx.correlation_id,
                ),
            )

        def local_kv_write() -> bool:
            nonlocal last_failure
            try:
                client.kv_put(LOCAL_TEST_KEY, f"payload-for-local-test-in-{cluster}")
            except RuntimeHostError as e:
                last_failure = sanitize_error_message(e)
                logger.warning(
                    "Local KV write failed; something is not ready yet",
                    extra={**extra, "error": last_failure},
                )
                return False
            return True

        start = self._ctx.clock()
        poll_until(
            local_kv_write,
            COMPLETION_POLL_INTERVAL_SECONDS,
            description=f"local kv write in {cluster}",
            deadline=deadline,
            on_deadline=timed_out,
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
        )
        logger.info(
            "Local KV write success",
            extra={**extra, "elapsed_seconds": self._ctx.clock() - start},
        )

        def catalog_healthy() -> bool:
            nonlocal last_failure
            try:
                unhealthy = self.find_unhealthy_instances(client)
            except RuntimeHostError as e:
                last_failure = sanitize_error_message(e)
            else:
                if not unhealthy:
                    return True
                last_failure = "unhealthy instances: " + ", ".join(unhealthy)
            logger.warning(
                "Local catalog is not healthy yet",
                extra={**extra, "error": last_failure},
            )
            return False

        start = self._ctx.clock()
        poll_until(
            catalog_healthy,
            COMPLETION_POLL_INTERVAL_SECONDS,
            description=f"catalog health in {cluster}",
            deadline=deadline,
            on_deadline=timed_out,
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
        )
        logger.info(
            "Local catalog is healthy",
            extra={**extra, "elapsed_seconds": self._ctx.clock() - start},
        )

    def find_unhealthy_instances(self, client: ConsulClient) -> list[str]:
        """Describe every service instance whose merged status is not passing."""
        enterprise = self._ctx.enterprise
        failing: list[str] = []
        for sid in list_all_services(
            client, enterprise, self._ctx.config.enterprise_disable_partitions
        ):
            instances = client.health_service(
                sid.name,
                namespace=sid.namespace if enterprise else "",
                partition=sid.partition if enterprise else "",
            )
            for instance in instances:
                status = instance.overall_status
                if status != EnumCheckStatus.PASSING:
                    failing.append(f"[{sid} @ {instance.node_id} is {status.value}]")
        return failing


__all__: list[str] = [
    "COMPLETION_POLL_INTERVAL_SECONDS",
    "KV_POLL_INTERVAL_SECONDS",
    "LEADER_POLL_INTERVAL_SECONDS",
    "LOCAL_TEST_KEY",
    "NODE_UPDATE_POLL_INTERVAL_SECONDS",
    "TOKEN_POLL_INTERVAL_SECONDS",
    "ConvergenceWaiters",
]
