# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Allow ``python -m meshboot.cli``."""

from meshboot.cli.commands import cli

if __name__ == "__main__":
    cli()
