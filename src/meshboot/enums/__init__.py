# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Enumerations shared across meshboot."""

from meshboot.enums.enum_bootstrap_error_code import EnumBootstrapErrorCode
from meshboot.enums.enum_check_status import EnumCheckStatus
from meshboot.enums.enum_cluster_link_mode import EnumClusterLinkMode
from meshboot.enums.enum_config_entry_kind import (
    CONFIG_ENTRY_DELETION_ORDER,
    PROXY_DEFAULTS_GLOBAL_NAME,
    EnumConfigEntryKind,
)
from meshboot.enums.enum_credential_kind import EnumCredentialKind
from meshboot.enums.enum_infra_transport_type import EnumInfraTransportType
from meshboot.enums.enum_node_kind import EnumNodeKind

__all__: list[str] = [
    "CONFIG_ENTRY_DELETION_ORDER",
    "PROXY_DEFAULTS_GLOBAL_NAME",
    "EnumBootstrapErrorCode",
    "EnumCheckStatus",
    "EnumClusterLinkMode",
    "EnumConfigEntryKind",
    "EnumCredentialKind",
    "EnumInfraTransportType",
    "EnumNodeKind",
]
