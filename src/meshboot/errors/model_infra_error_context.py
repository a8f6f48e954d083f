# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure Error Context Configuration Model.

Bundles the structured fields shared by every infrastructure error so that
error constructors keep a short parameter list.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from meshboot.enums import EnumInfraTransportType


class ModelInfraErrorContext(BaseModel):
    """Configuration model for infrastructure error context.

    Attributes:
        transport_type: Type of infrastructure transport (CONSUL, FILESYSTEM, ...)
        operation: Operation being performed (acl_bootstrap, kv_put, ...)
        target_name: Target resource or endpoint name (usually the cluster)
        correlation_id: Bootstrap run correlation ID

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.CONSUL,
        ...     operation="acl_bootstrap",
        ...     target_name="dc1",
        ...     correlation_id=uuid4(),
        ... )
        >>> raise RuntimeHostError("Operation failed", context=context)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    transport_type: Optional[EnumInfraTransportType] = Field(
        default=None,
        description="Type of infrastructure transport (CONSUL, FILESYSTEM, etc.)",
    )
    operation: Optional[str] = Field(
        default=None,
        description="Operation being performed (acl_bootstrap, kv_put, etc.)",
    )
    target_name: Optional[str] = Field(
        default=None,
        description="Target resource or endpoint name",
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Bootstrap run correlation ID for tracing",
    )


__all__ = ["ModelInfraErrorContext"]
