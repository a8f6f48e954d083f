# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Filesystem-backed credential cache.

Each secret is stored as ``<directory>/<name>.val``. Writes go through a
temporary file in the same directory that is flushed and fsynced before being
atomically renamed over the destination, so a value is either fully present
or absent after a crash.

Security:
    Files are created with mode 0600. Values never appear in log output;
    only secret names are logged.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import ModelInfraErrorContext, SecretResolutionError

logger = logging.getLogger(__name__)

VALUE_SUFFIX: str = ".val"
_FILE_MODE: int = 0o600


class StoreCredentialCacheFilesystem:
    """Durable ``<name>.val`` store rooted at ``directory``.

    Example:
        >>> cache = StoreCredentialCacheFilesystem(Path("cache"))
        >>> cache.load("master-token")
        ''
        >>> cache.save("master-token", "c0ffee")
        >>> cache.load("master-token")
        'c0ffee'
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _value_path(self, name: str) -> Path:
        if not name or "/" in name or name.startswith("."):
            raise self._error(f"invalid cached secret name: {name!r}", "validate", name)
        return self._directory / f"{name}{VALUE_SUFFIX}"

    def load(self, name: str) -> str:
        return self._read(self._value_path(name), name)

    def save(self, name: str, value: str) -> None:
        self._write(self._value_path(name), value, name)
        logger.debug("Saved cached secret", extra={"secret_name": name})

    def delete(self, name: str) -> None:
        path = self._value_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise self._error("Failed to delete cached secret", "delete", name) from e
        logger.info("Deleted cached secret", extra={"secret_name": name})

    def delete_prefix(self, prefix: str) -> list[str]:
        removed: list[str] = []
        for name in self.list_names():
            if name.startswith(prefix):
                self.delete(name)
                removed.append(name)
        return removed

    def load_or_derive(self, name: str, derive: Callable[[], str]) -> str:
        value = self.load(name)
        if value:
            return value
        value = derive()
        self.save(name, value)
        return value

    def list_names(self) -> list[str]:
        """Names of all cached secrets, sorted."""
        if not self._directory.is_dir():
            return []
        return sorted(
            p.name[: -len(VALUE_SUFFIX)]
            for p in self._directory.iterdir()
            if p.is_file() and p.name.endswith(VALUE_SUFFIX)
        )

    def load_string_file(self, filename: str) -> str:
        """Read an auxiliary file (relative to the cache directory), ``""`` if absent."""
        return self._read(self._directory / filename, filename)

    def write_string_file(self, filename: str, contents: str) -> None:
        """Atomically write an auxiliary file relative to the cache directory."""
        self._write(self._directory / filename, contents, filename)

    def _read(self, path: Path, name: str) -> str:
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise self._error("Failed to read cached secret", "load", name) from e

    def _write(self, path: Path, value: str, name: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.chmod(tmp_name, _FILE_MODE)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise self._error("Failed to persist cached secret", "save", name) from e

    def _error(self, message: str, operation: str, name: str) -> SecretResolutionError:
        context = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.FILESYSTEM,
            operation=operation,
            target_name=str(self._directory),
        )
        return SecretResolutionError(message, context=context, secret_name=name)


__all__ = ["VALUE_SUFFIX", "StoreCredentialCacheFilesystem"]
