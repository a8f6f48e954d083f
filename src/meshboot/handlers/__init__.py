# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Control-plane HTTP handlers.

Exports:
    ConsulClient: Blocking client for one Consul agent address
    ConsulClientProvider: Owner/factory of ConsulClient instances
    ProtocolClientProvider: Interface consumed by the orchestrator
"""

from meshboot.handlers.handler_consul import ConsulClient
from meshboot.handlers.provider_consul_client import (
    ConsulClientProvider,
    ProtocolClientProvider,
)

__all__: list[str] = [
    "ConsulClient",
    "ConsulClientProvider",
    "ProtocolClientProvider",
]
