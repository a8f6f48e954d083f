# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Credential registry key."""

from pydantic import BaseModel, ConfigDict

from meshboot.enums import EnumCredentialKind


class ModelCredentialKey(BaseModel):
    """(kind, scope) key of the in-memory credential registry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: EnumCredentialKind
    scope: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.scope}"


__all__ = ["ModelCredentialKey"]
