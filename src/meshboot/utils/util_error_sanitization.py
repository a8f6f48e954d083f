# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error message sanitization utilities.

Control-plane errors are logged and re-raised with context, and the
credential registry can be dumped into defect reports. This module keeps
secret material out of both.

Error Sanitization Guidelines:
    NEVER include: ACL tokens, gossip keys, peering tokens, any cached secret
    SAFE to include: cluster/node/service names, API paths, status codes,
    the control plane's own error text, correlation IDs

Example:
    >>> mask_secret("9b1e0c4e-1d0b-4f4e-a2c3-5d6e7f809a1b")
    '9b1e****'
    >>> sanitize_error_string(
    ...     "bad token 9b1e0c4e-1d0b-4f4e-a2c3-5d6e7f809a1b",
    ...     secrets=["9b1e0c4e-1d0b-4f4e-a2c3-5d6e7f809a1b"],
    ... )
    'bad token [REDACTED]'
"""

from __future__ import annotations

import re
from collections.abc import Iterable

REDACTED: str = "[REDACTED]"

# Header/field fragments that carry a bearer credential in echoed requests.
_CREDENTIAL_FRAGMENTS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(X-Consul-Token\s*[:=]\s*)\S+", re.IGNORECASE),
    re.compile(r"(\"?SecretID\"?\s*[:=]\s*\"?)[^\",\s}]+", re.IGNORECASE),
    re.compile(r"(\"?PeeringToken\"?\s*[:=]\s*\"?)[^\",\s}]+", re.IGNORECASE),
)


def mask_secret(value: str, visible: int = 4) -> str:
    """Keep the first ``visible`` characters of a secret, mask the rest."""
    if not value:
        return ""
    if len(value) <= visible:
        return "****"
    return value[:visible] + "****"


def sanitize_error_string(
    error_str: str, secrets: Iterable[str] = (), max_length: int = 500
) -> str:
    """Redact known secrets and credential fields from a raw error string.

    Sanitization rules:
        1. Replace every occurrence of a known secret value
        2. Redact values of credential-bearing fields (token header, SecretID)
        3. Truncate long messages to prevent excessive data exposure
    """
    if not error_str:
        return ""

    sanitized = error_str
    for secret in secrets:
        if secret:
            sanitized = sanitized.replace(secret, REDACTED)
    for pattern in _CREDENTIAL_FRAGMENTS:
        sanitized = pattern.sub(lambda m: m.group(1) + REDACTED, sanitized)

    if len(sanitized) > max_length:
        return sanitized[:max_length] + "... [truncated]"
    return sanitized


def sanitize_error_message(
    exception: BaseException, secrets: Iterable[str] = (), max_length: int = 500
) -> str:
    """Sanitize an exception for logs: ``"{ExceptionType}: {message}"``.

    Example:
        >>> try:
        ...     raise ValueError("X-Consul-Token: abc123 rejected")
        ... except ValueError as e:
        ...     sanitize_error_message(e)
        'ValueError: X-Consul-Token: [REDACTED] rejected'
    """
    message = sanitize_error_string(str(exception), secrets, max_length)
    return f"{type(exception).__name__}: {message}"


__all__: list[str] = [
    "REDACTED",
    "mask_secret",
    "sanitize_error_message",
    "sanitize_error_string",
]
