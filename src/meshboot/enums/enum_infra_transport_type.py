# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Transport Type Enumeration.

Defines the canonical transport types touched while bootstrapping a control
plane. Used for error context and transport identification.
"""

from enum import Enum


class EnumInfraTransportType(str, Enum):
    """Infrastructure transport types for meshboot components.

    Attributes:
        HTTP: Generic HTTP transport (client construction, connection setup)
        CONSUL: Consul control-plane HTTP API
        FILESYSTEM: Local durable credential cache
        RUNTIME: Orchestrator-internal operations
    """

    HTTP = "http"
    CONSUL = "consul"
    FILESYSTEM = "filesystem"
    RUNTIME = "runtime"


__all__ = ["EnumInfraTransportType"]
