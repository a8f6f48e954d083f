# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-memory credential cache for testing.

Mirrors StoreCredentialCacheFilesystem semantics (``""`` not-found sentinel,
whitespace-stripped loads) and records every mutating operation in
``operations`` so tests can assert on write ordering.
"""

from __future__ import annotations

from collections.abc import Callable


class StoreCredentialCacheInMemory:
    """Dict-backed ProtocolCredentialCache implementation.

    Example:
        >>> cache = StoreCredentialCacheInMemory({"master-token": "abc"})
        >>> cache.load("master-token")
        'abc'
        >>> cache.load("missing")
        ''
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._files: dict[str, str] = {}
        self.operations: list[tuple[str, str]] = []

    def load(self, name: str) -> str:
        return self._values.get(name, "").strip()

    def save(self, name: str, value: str) -> None:
        self._values[name] = value
        self.operations.append(("save", name))

    def delete(self, name: str) -> None:
        self._values.pop(name, None)
        self.operations.append(("delete", name))

    def delete_prefix(self, prefix: str) -> list[str]:
        removed = sorted(n for n in self._values if n.startswith(prefix))
        for name in removed:
            self.delete(name)
        return removed

    def load_or_derive(self, name: str, derive: Callable[[], str]) -> str:
        value = self.load(name)
        if value:
            return value
        value = derive()
        self.save(name, value)
        return value

    def list_names(self) -> list[str]:
        return sorted(self._values)

    def load_string_file(self, filename: str) -> str:
        return self._files.get(filename, "").strip()

    def write_string_file(self, filename: str, contents: str) -> None:
        self._files[filename] = contents
        self.operations.append(("write_file", filename))

    def snapshot(self) -> dict[str, str]:
        """Copy of every cached value."""
        return dict(self._values)


__all__ = ["StoreCredentialCacheInMemory"]
