# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Control-plane client provider.

The orchestrator never constructs HTTP clients itself; it asks a provider for
a client bound to ``(address, token)``. The provider owns every client it
hands out and closes them all on ``close()``.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Protocol, runtime_checkable

import httpx
from pydantic import SecretStr

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import InfraUnavailableError, ModelInfraErrorContext
from meshboot.handlers.handler_consul import ConsulClient

logger = logging.getLogger(__name__)


@runtime_checkable
class ProtocolClientProvider(Protocol):
    """Creates control-plane clients bound to an agent address and ACL token."""

    def get_client(self, address: str, token: SecretStr | None = None) -> ConsulClient:
        ...


class ConsulClientProvider:
    """Owns the ConsulClient instances used during one bootstrap run.

    Clients are cached per ``(address, token)`` so repeated lookups for the
    same server reuse one connection pool.

    Example:
        >>> with ConsulClientProvider(port=8500) as provider:
        ...     client = provider.get_client("10.0.1.11")
        ...     client.status_leader()
    """

    def __init__(
        self,
        scheme: str = "http",
        port: int = 8500,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._scheme = scheme
        self._port = port
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._clients: dict[tuple[str, str], ConsulClient] = {}
        self._closed = False

    def get_client(self, address: str, token: SecretStr | None = None) -> ConsulClient:
        if self._closed:
            raise InfraUnavailableError(
                "Client provider already closed",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.CONSUL,
                    operation="get_client",
                    target_name=address,
                ),
            )
        secret = token.get_secret_value() if token is not None else ""
        key = (address, secret)
        client = self._clients.get(key)
        if client is None:
            client = ConsulClient(
                f"{self._scheme}://{address}:{self._port}",
                token=token,
                timeout_seconds=self._timeout_seconds,
                transport=self._transport,
            )
            self._clients[key] = client
            logger.debug("Created Consul client", extra={"address": address})
        return client

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()
        self._closed = True

    def __enter__(self) -> ConsulClientProvider:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["ConsulClientProvider", "ProtocolClientProvider"]
