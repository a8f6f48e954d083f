# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error codes carried by every meshboot error."""

from enum import Enum


class EnumBootstrapErrorCode(str, Enum):
    """Classification codes for infrastructure and bootstrap errors."""

    OPERATION_FAILED = "operation_failed"
    INVALID_CONFIGURATION = "invalid_configuration"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONNECTION_ERROR = "connection_error"
    TIMEOUT_ERROR = "timeout_error"
    AUTHENTICATION_ERROR = "authentication_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVARIANT_VIOLATION = "invariant_violation"


__all__ = ["EnumBootstrapErrorCode"]
