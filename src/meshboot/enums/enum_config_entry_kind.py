# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Config entry kinds and their dependency-safe deletion order."""

from enum import Enum


class EnumConfigEntryKind(str, Enum):
    """Central config entry kinds managed by the reconciler."""

    MESH = "mesh"
    SERVICE_INTENTIONS = "service-intentions"
    INGRESS_GATEWAY = "ingress-gateway"
    TERMINATING_GATEWAY = "terminating-gateway"
    SERVICE_ROUTER = "service-router"
    SERVICE_SPLITTER = "service-splitter"
    SERVICE_RESOLVER = "service-resolver"
    SERVICE_DEFAULTS = "service-defaults"
    PROXY_DEFAULTS = "proxy-defaults"
    EXPORTED_SERVICES = "exported-services"


# Entries that reference other entries come first so that nothing is deleted
# while something else still points at it.
CONFIG_ENTRY_DELETION_ORDER: tuple[EnumConfigEntryKind, ...] = (
    EnumConfigEntryKind.MESH,
    EnumConfigEntryKind.SERVICE_INTENTIONS,
    EnumConfigEntryKind.INGRESS_GATEWAY,
    EnumConfigEntryKind.TERMINATING_GATEWAY,
    EnumConfigEntryKind.SERVICE_ROUTER,
    EnumConfigEntryKind.SERVICE_SPLITTER,
    EnumConfigEntryKind.SERVICE_RESOLVER,
    EnumConfigEntryKind.SERVICE_DEFAULTS,
    EnumConfigEntryKind.PROXY_DEFAULTS,
    EnumConfigEntryKind.EXPORTED_SERVICES,
)

PROXY_DEFAULTS_GLOBAL_NAME: str = "global"


__all__ = [
    "CONFIG_ENTRY_DELETION_ORDER",
    "PROXY_DEFAULTS_GLOBAL_NAME",
    "EnumConfigEntryKind",
]
