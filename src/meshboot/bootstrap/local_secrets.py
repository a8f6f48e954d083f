# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Locally generated secrets and run-once markers.

LocalSecrets derives the secrets that agents need before any control plane
is running (agent master token, gossip encryption key). Each is generated
once, cached, and reused on every later run; disabling the owning feature
deletes the cached value so re-enabling it produces a fresh one.

RunOnceMarker records that a one-time step (``init``) has completed, as a
``<name>.done`` file next to the cached secrets.
"""

from __future__ import annotations

import base64
import logging
import secrets
import uuid
from collections.abc import Callable

from pydantic import SecretStr

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError
from meshboot.models import ModelBootstrapConfig
from meshboot.stores import ProtocolCredentialCache

logger = logging.getLogger(__name__)

AGENT_MASTER_TOKEN_CACHE_NAME: str = "agent-master-token"
GOSSIP_KEY_CACHE_NAME: str = "gossip-key"
GOSSIP_KEY_BYTES: int = 32
INIT_MARKER: str = "init"
PROGRAM_NAME: str = "meshboot"


def generate_agent_master_token() -> str:
    return str(uuid.uuid4())


def generate_gossip_key() -> str:
    return base64.b64encode(secrets.token_bytes(GOSSIP_KEY_BYTES)).decode("ascii")


class LocalSecrets:
    """Derives, caches and clears locally generated secrets."""

    def __init__(self, cache: ProtocolCredentialCache) -> None:
        self._cache = cache

    def prepare(self, config: ModelBootstrapConfig) -> ModelBootstrapConfig:
        """Return a copy of ``config`` carrying the resolved local secrets.

        Configured values win over generated ones and are written to the
        cache so later runs see the same value.
        """
        update: dict[str, SecretStr | None] = {}

        if config.acls_enabled:
            update["agent_master_token"] = SecretStr(
                self._resolve(
                    AGENT_MASTER_TOKEN_CACHE_NAME,
                    config.secret_value("agent_master_token"),
                    generate_agent_master_token,
                )
            )
        else:
            self._cache.delete(AGENT_MASTER_TOKEN_CACHE_NAME)
            update["agent_master_token"] = None

        if config.encryption_gossip:
            update["gossip_key"] = SecretStr(
                self._resolve(
                    GOSSIP_KEY_CACHE_NAME,
                    config.secret_value("gossip_key"),
                    generate_gossip_key,
                )
            )
        else:
            self._cache.delete(GOSSIP_KEY_CACHE_NAME)
            update["gossip_key"] = None

        return config.model_copy(update=update)

    def _resolve(self, name: str, configured: str, derive: Callable[[], str]) -> str:
        if configured:
            if self._cache.load(name) != configured:
                self._cache.save(name, configured)
            return configured
        value = self._cache.load_or_derive(name, derive)
        logger.debug("Local secret ready", extra={"secret_name": name})
        return value


class RunOnceMarker:
    """``<name>.done`` markers for steps that must run exactly once."""

    def __init__(self, cache: ProtocolCredentialCache) -> None:
        self._cache = cache

    @staticmethod
    def _filename(name: str) -> str:
        return f"{name}.done"

    def has_run_once(self, name: str) -> bool:
        return self._cache.load_string_file(self._filename(name)) == name

    def run_once(self, name: str, fn: Callable[[], None]) -> bool:
        """Run ``fn`` unless ``name`` already completed; True when it ran."""
        if self.has_run_once(name):
            return False
        fn()
        self._cache.write_string_file(self._filename(name), name)
        logger.info("One-time step completed", extra={"step": name})
        return True

    def check_has_run_once(self, name: str) -> None:
        if self.has_run_once(name):
            return
        raise ProtocolConfigurationError(
            f"'{PROGRAM_NAME} {name}' has not yet been run",
            context=ModelInfraErrorContext(
                transport_type=EnumInfraTransportType.FILESYSTEM,
                operation="check_has_run_once",
                target_name=name,
            ),
        )


__all__: list[str] = [
    "AGENT_MASTER_TOKEN_CACHE_NAME",
    "GOSSIP_KEY_CACHE_NAME",
    "INIT_MARKER",
    "LocalSecrets",
    "RunOnceMarker",
    "generate_agent_master_token",
    "generate_gossip_key",
]
