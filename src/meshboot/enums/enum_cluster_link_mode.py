# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""How the clusters of a topology are linked together."""

from enum import Enum


class EnumClusterLinkMode(str, Enum):
    """Inter-cluster linking mode.

    Attributes:
        FEDERATE: WAN federation under one primary datacenter
        PEER: Cluster peering; every cluster bootstraps as its own primary
    """

    FEDERATE = "federate"
    PEER = "peer"


__all__ = ["EnumClusterLinkMode"]
