# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Utility helpers."""

from meshboot.utils.util_error_sanitization import (
    REDACTED,
    mask_secret,
    sanitize_error_message,
    sanitize_error_string,
)

__all__: list[str] = [
    "REDACTED",
    "mask_secret",
    "sanitize_error_message",
    "sanitize_error_string",
]
