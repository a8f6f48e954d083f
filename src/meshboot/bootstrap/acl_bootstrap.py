# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""ACL bootstrap protocol.

Establishes a working management token for one cluster, reusing a cached or
pre-seeded token when it still works and bootstrapping the ACL system
otherwise.

Protocol:
    1. Load the cached management token. If none is cached but an initial
       token is configured, save that to the cache first (write-before-use).
    2. Validate the candidate with a token self-read. "ACL system still
       booting" errors are retried every 250 ms. A rejection answered by the
       server deletes the cached token and falls through to step 3; connection
       failures and timeouts abort the run and leave the cache untouched.
    3. Call the one-time bootstrap endpoint, retrying "still booting" errors
       every 250 ms. The returned token is persisted before anything else
       uses it.
    4. Wait until the token is live on every server of the cluster.

Security:
    Token values are never logged; log records carry the cache name only.
"""

from __future__ import annotations

import logging

from pydantic import SecretStr

from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.convergence_waiters import (
    TOKEN_POLL_INTERVAL_SECONDS,
    ConvergenceWaiters,
)
from meshboot.bootstrap.predicates import is_acl_not_bootstrapped
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.bootstrap.util_polling import poll_until
from meshboot.errors import InfraConsulError
from meshboot.handlers import ConsulClient
from meshboot.models import ModelACLToken
from meshboot.utils import sanitize_error_message

logger = logging.getLogger(__name__)

INITIAL_MANAGEMENT_TOKEN_NAME: str = "initial-management"


class AclBootstrapper:
    """Obtains a validated management token for a cluster."""

    def __init__(self, ctx: BootstrapContext, waiters: ConvergenceWaiters) -> None:
        self._ctx = ctx
        self._waiters = waiters

    def bootstrap(self, cluster: str, client: ConsulClient) -> SecretStr:
        """Return a working management token for ``cluster``.

        The token is also recorded on the run context so that subsequent
        clients for the cluster are authenticated with it.

        Args:
            cluster: Cluster to bootstrap.
            client: Client for the cluster's leader; its own token is unused.

        Raises:
            BootstrapPhaseError: bootstrap failed for a non-transient reason.
        """
        cache = self._ctx.cache
        cache_name = self._ctx.management_token_cache_name(cluster)
        extra = self._ctx.log_extra(cluster=cluster, secret_name=cache_name)

        with bootstrap_phase_error_context(
            "acl_bootstrap", cluster=cluster, correlation_id=self._ctx.correlation_id
        ):
            secret = cache.load(cache_name)
            initial = self._ctx.config.secret_value("initial_master_token")
            if not secret and initial:
                cache.save(cache_name, initial)
                secret = initial
                logger.info("Adopted configured initial management token", extra=extra)

            if secret and not self._validate(cluster, client, secret):
                cache.delete(cache_name)
                secret = ""

            if not secret:
                secret = self._bootstrap_acl_system(cluster, client)
                cache.save(cache_name, secret)
                logger.info("ACL system bootstrapped", extra=extra)
            else:
                logger.info("Reusing current management token", extra=extra)

        self._ctx.set_management_token(cluster, secret)
        self._waiters.wait_for_token_on_servers(
            cluster, INITIAL_MANAGEMENT_TOKEN_NAME, secret
        )
        return SecretStr(secret)

    def _validate(self, cluster: str, client: ConsulClient, secret: str) -> bool:
        """Self-read with ``secret``; False when the server rejects the token.

        Connection failures and timeouts propagate: an unreachable server says
        nothing about the token, and the cached copy may be the only one left.
        """
        extra = self._ctx.log_extra(cluster=cluster)
        try:
            poll_until(
                lambda: bool(client.acl_token_read_self(token=SecretStr(secret))),
                TOKEN_POLL_INTERVAL_SECONDS,
                is_transient=is_acl_not_bootstrapped,
                description=f"ACL system in {cluster}",
                sleep=self._ctx.sleep,
                clock=self._ctx.clock,
                log_extra=extra,
            )
        except InfraConsulError as e:
            logger.warning(
                "Management token does not work anymore",
                extra={
                    **extra,
                    "status_code": e.status_code,
                    "error": sanitize_error_message(e, [secret]),
                },
            )
            return False
        return True

    def _bootstrap_acl_system(self, cluster: str, client: ConsulClient) -> str:
        issued: list[ModelACLToken] = []

        def bootstrap_once() -> bool:
            logger.info("Bootstrapping ACLs", extra=self._ctx.log_extra(cluster=cluster))
            issued.append(client.acl_bootstrap())
            return True

        poll_until(
            bootstrap_once,
            TOKEN_POLL_INTERVAL_SECONDS,
            is_transient=is_acl_not_bootstrapped,
            description=f"ACL bootstrap in {cluster}",
            sleep=self._ctx.sleep,
            clock=self._ctx.clock,
            log_extra=self._ctx.log_extra(cluster=cluster),
        )
        return issued[-1].secret_id


__all__: list[str] = ["INITIAL_MANAGEMENT_TOKEN_NAME", "AclBootstrapper"]
