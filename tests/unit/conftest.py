# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Shared pytest configuration for meshboot unit tests.

Every test under tests/unit/ is marked ``unit`` by the collection hook below,
so files do not need their own ``pytestmark``:

    pytest -m unit
    pytest -m "not unit"
"""

import pytest


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Add the unit marker to tests collected from tests/unit.

    A ``pytestmark`` in conftest.py only applies to the conftest module
    itself, hence the hook.
    """
    unit_marker = pytest.mark.unit

    for item in items:
        if "tests/unit" in item.path.as_posix():
            if not any(marker.name == "unit" for marker in item.iter_markers()):
                item.add_marker(unit_marker)
