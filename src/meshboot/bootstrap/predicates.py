# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Transient control-plane error predicates.

The control plane reports several start-up conditions only through error
text, so these predicates match substrings of ``str(error)``. Anything not
recognised here is treated as structural by the callers.
"""

from __future__ import annotations

ACL_NOT_BOOTSTRAPPED_SIGNATURES: tuple[str, ...] = (
    "ACL system must be bootstrapped before making any requests that require authorization",
    "The ACL system is currently in legacy mode",
)

ACL_NOT_FOUND_SIGNATURE: str = "Unexpected response code: 403 (ACL not found)"

INVALID_CONFIG_ENTRY_KIND_SIGNATURE: str = "invalid config entry kind"


def is_acl_not_bootstrapped(error: BaseException) -> bool:
    """True while the ACL subsystem is still booting or in legacy mode."""
    message = str(error)
    return any(signature in message for signature in ACL_NOT_BOOTSTRAPPED_SIGNATURES)


def is_acl_not_found(error: BaseException) -> bool:
    """True when a token is not (yet) known to the server answering the call."""
    return ACL_NOT_FOUND_SIGNATURE in str(error)


def is_invalid_config_entry_kind(error: BaseException) -> bool:
    """True when the server does not know a config entry kind (version skew)."""
    return INVALID_CONFIG_ENTRY_KIND_SIGNATURE in str(error)


__all__: list[str] = [
    "ACL_NOT_BOOTSTRAPPED_SIGNATURES",
    "ACL_NOT_FOUND_SIGNATURE",
    "INVALID_CONFIG_ENTRY_KIND_SIGNATURE",
    "is_acl_not_bootstrapped",
    "is_acl_not_found",
    "is_invalid_config_entry_kind",
]
