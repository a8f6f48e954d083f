# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Process-wide logging setup for the meshboot CLI."""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV_VAR: str = "MESHBOOT_LOG_LEVEL"
VALID_LOG_LEVELS: frozenset[str] = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)


def configure_logging() -> None:
    """Configure logging from the MESHBOOT_LOG_LEVEL environment variable.

    Called before any configuration is loaded, so the level comes from the
    environment rather than from the configuration file.

    Environment Variables:
        MESHBOOT_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL
            Default: INFO

    Log Format Example:
        2025-01-15 10:30:45 [INFO] meshboot.bootstrap.acl_bootstrap: ACL system bootstrapped
    """
    log_level = os.getenv(LOG_LEVEL_ENV_VAR, "INFO").upper()

    if log_level not in VALID_LOG_LEVELS:
        print(
            f"Warning: Invalid {LOG_LEVEL_ENV_VAR} '{log_level}', using INFO. "
            f"Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}",
            file=sys.stderr,
        )
        log_level = "INFO"

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


__all__: list[str] = ["LOG_LEVEL_ENV_VAR", "configure_logging"]
