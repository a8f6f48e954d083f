# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Health check status enumeration with severity ranking."""

from __future__ import annotations

from enum import Enum


class EnumCheckStatus(str, Enum):
    """Health check status as reported by the control plane.

    Statuses are ordered by severity: passing < warning < critical < maintenance.
    Unknown status strings rank as passing, matching the control plane's own
    client behaviour.
    """

    PASSING = "passing"
    WARNING = "warning"
    CRITICAL = "critical"
    MAINTENANCE = "maintenance"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str) -> EnumCheckStatus:
        try:
            return cls(value)
        except ValueError:
            return cls.PASSING

    @classmethod
    def worst(cls, a: EnumCheckStatus, b: EnumCheckStatus) -> EnumCheckStatus:
        """Return the more severe of two statuses (ties keep ``b``)."""
        return a if a.rank > b.rank else b


_RANKS: dict[EnumCheckStatus, int] = {
    EnumCheckStatus.PASSING: 0,
    EnumCheckStatus.WARNING: 1,
    EnumCheckStatus.CRITICAL: 2,
    EnumCheckStatus.MAINTENANCE: 3,
}


__all__ = ["EnumCheckStatus"]
