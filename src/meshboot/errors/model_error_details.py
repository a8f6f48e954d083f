# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Structured payload attached to every meshboot error."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from meshboot.enums import EnumBootstrapErrorCode


class ModelErrorDetails(BaseModel):
    """Structured view of an error for logging and assertions.

    Attributes:
        message: Human-readable error message (never contains secrets)
        error_code: Classification code
        correlation_id: Bootstrap run correlation ID, when known
        context: Structured context (transport_type, operation, cluster, ...)
    """

    model_config = ConfigDict(frozen=True)

    message: str
    error_code: EnumBootstrapErrorCode = EnumBootstrapErrorCode.OPERATION_FAILED
    correlation_id: Optional[UUID] = None
    context: dict[str, object] = Field(default_factory=dict)


__all__ = ["ModelErrorDetails"]
