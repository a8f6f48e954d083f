# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Credential kinds tracked by the in-memory credential registry."""

from enum import Enum


class EnumCredentialKind(str, Enum):
    """Kinds of ACL credentials minted during a bootstrap run.

    Attributes:
        AGENT: Per-node agent token (scope = node name)
        SERVICE: Service-identity token (scope = "<cluster>--<service id>")
        MESH_GATEWAY: Mesh gateway token (scope = cluster name)
        REPLICATION: WAN federation ACL replication token (scope = "")
    """

    AGENT = "agent"
    SERVICE = "service"
    MESH_GATEWAY = "mesh-gateway"
    REPLICATION = "replication"


__all__ = ["EnumCredentialKind"]
