# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Protocol definition for the durable credential cache.

The credential cache holds secrets that must survive re-runs of the
orchestrator (management token, agent master token, gossip key, secrets
committed after cross-cluster issuance).

Protocol Methods:
    - load: Read a value; ``""`` is the not-found sentinel
    - save: Durably write a value (fully synced before returning)
    - delete: Remove a value; deleting a missing value is not an error
    - delete_prefix: Remove every value whose name starts with a prefix
    - load_or_derive: Load, or derive-then-save exactly once
    - load_string_file / write_string_file: Auxiliary files (run-once markers,
      Kubernetes auth inputs) kept in the same location

Implementations:
    - StoreCredentialCacheFilesystem: ``<dir>/<name>.val`` files (production)
    - StoreCredentialCacheInMemory: dict-backed store for testing
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable


@runtime_checkable
class ProtocolCredentialCache(Protocol):
    """Protocol for durable, idempotent secret storage.

    Key Properties:
        - Durable: a value returned by ``save`` is readable after a crash
        - No distinct not-found error: absent values load as ``""``
        - Single writer: the orchestrator owns the cache for the whole run
    """

    def load(self, name: str) -> str:
        """Return the cached value for ``name`` or ``""`` when absent."""
        ...

    def save(self, name: str, value: str) -> None:
        """Durably store ``value`` under ``name``, replacing any prior value."""
        ...

    def delete(self, name: str) -> None:
        """Remove ``name``; a missing value is silently ignored."""
        ...

    def delete_prefix(self, prefix: str) -> list[str]:
        """Remove every value whose name starts with ``prefix``.

        Returns:
            Names that were removed.
        """
        ...

    def load_or_derive(self, name: str, derive: Callable[[], str]) -> str:
        """Return the cached value, deriving and saving it on first use.

        ``derive`` is only called when nothing is cached, and its result is
        saved before being returned.
        """
        ...

    def load_string_file(self, filename: str) -> str:
        """Read auxiliary material stored beside the secrets, ``""`` when absent."""
        ...

    def write_string_file(self, filename: str, contents: str) -> None:
        """Durably write auxiliary material beside the secrets."""
        ...


__all__ = ["ProtocolCredentialCache"]
