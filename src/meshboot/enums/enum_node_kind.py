# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Node roles as produced by the topology compiler."""

from enum import Enum


class EnumNodeKind(str, Enum):
    """Role of a node in the topology.

    Attributes:
        SERVER: Control-plane server agent
        CLIENT: Client agent (runs workloads, receives an agent token)
        DATAPLANE: Agentless node whose services are registered by proxy
        INFRA: Supporting infrastructure (observability, vault, ...)
    """

    SERVER = "server"
    CLIENT = "client"
    DATAPLANE = "dataplane"
    INFRA = "infra"


__all__ = ["EnumNodeKind"]
