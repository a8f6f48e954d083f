# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Runtime wiring: configuration loading and logging setup."""

from meshboot.runtime.config_loader import load_bootstrap_config, load_topology
from meshboot.runtime.logging_config import configure_logging

__all__: list[str] = ["configure_logging", "load_bootstrap_config", "load_topology"]
