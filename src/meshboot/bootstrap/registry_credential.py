# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-memory credential registry for one bootstrap run.

Secrets minted during a run are recorded under ``(kind, scope)`` so that
later phases (agent token injection, replication token injection) can find
them. The registry belongs to a single orchestrator instance and is never
persisted; durable copies go through the credential cache.

Invariants:
    - Each key is written at most once per run
    - Reading a key before the phase that writes it is a program defect
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import SecretStr

from meshboot.enums import EnumCredentialKind
from meshboot.errors import CredentialRegistryError
from meshboot.models import ModelCredentialKey
from meshboot.utils import mask_secret


class CredentialRegistry:
    """Write-once map from ``(kind, scope)`` to a credential secret.

    Example:
        >>> registry = CredentialRegistry()
        >>> registry.set(EnumCredentialKind.AGENT, "dc1-server1", "s3cr3t")
        >>> registry.must_get(EnumCredentialKind.AGENT, "dc1-server1").get_secret_value()
        's3cr3t'
        >>> registry.get(EnumCredentialKind.REPLICATION)
        ''
    """

    def __init__(self) -> None:
        self._entries: dict[ModelCredentialKey, SecretStr] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def set(self, kind: EnumCredentialKind, scope: str, secret: str) -> None:
        self.set_many(kind, {scope: secret})

    def set_many(self, kind: EnumCredentialKind, secrets: Mapping[str, str]) -> None:
        """Record several secrets of one kind; nothing is written on conflict."""
        keys = {ModelCredentialKey(kind=kind, scope=scope): s for scope, s in secrets.items()}
        duplicates = sorted(str(k) for k in keys if k in self._entries)
        if duplicates:
            raise CredentialRegistryError(
                f"credential already registered: {', '.join(duplicates)}",
                credential_kind=kind.value,
            )
        for key, secret in keys.items():
            self._entries[key] = SecretStr(secret)

    def get(self, kind: EnumCredentialKind, scope: str = "") -> str:
        """Plain secret for ``(kind, scope)``, ``""`` when not registered."""
        secret = self._entries.get(ModelCredentialKey(kind=kind, scope=scope))
        return "" if secret is None else secret.get_secret_value()

    def must_get(self, kind: EnumCredentialKind, scope: str = "") -> SecretStr:
        key = ModelCredentialKey(kind=kind, scope=scope)
        secret = self._entries.get(key)
        if secret is None or not secret.get_secret_value():
            raise CredentialRegistryError(
                f"token for '{key}' not set: {self.dump_masked()}",
                credential_kind=kind.value,
                scope=scope,
            )
        return secret

    def dump_masked(self) -> dict[str, str]:
        return {
            str(key): mask_secret(secret.get_secret_value())
            for key, secret in sorted(self._entries.items(), key=lambda kv: str(kv[0]))
        }


__all__: list[str] = ["CredentialRegistry"]
