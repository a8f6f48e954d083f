# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Infrastructure-Specific Error Classes.

Error Hierarchy:
    RuntimeHostError (base infrastructure error)
    ├── ProtocolConfigurationError
    ├── SecretResolutionError
    ├── InfraConnectionError
    │   └── InfraConsulError (see error_consul)
    ├── InfraTimeoutError
    │   └── MeshConvergenceTimeoutError (see error_bootstrap)
    ├── InfraAuthenticationError
    ├── InfraUnavailableError
    ├── BootstrapPhaseError (see error_bootstrap)
    └── CredentialRegistryError (see error_bootstrap)

All errors:
    - Carry an EnumBootstrapErrorCode classification
    - Support proper error chaining with `raise ... from e`
    - Include structured context for debugging via ``error.model``
    - Accept ModelInfraErrorContext for bundled context parameters
"""

from typing import Optional
from uuid import UUID

from meshboot.enums import EnumBootstrapErrorCode
from meshboot.errors.model_error_details import ModelErrorDetails
from meshboot.errors.model_infra_error_context import ModelInfraErrorContext


class RuntimeHostError(Exception):
    """Base error class for meshboot infrastructure errors.

    Structured Fields (via ModelInfraErrorContext):
        transport_type: Type of transport (consul, filesystem, ...)
        operation: Operation being performed
        correlation_id: Run correlation ID for tracking
        target_name: Target resource/endpoint name

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.CONSUL,
        ...     operation="acl_bootstrap",
        ...     target_name="dc1",
        ... )
        >>> raise RuntimeHostError("Operation failed", context=context)

        # Or with extra context:
        >>> raise RuntimeHostError(
        ...     "Operation failed",
        ...     context=context,
        ...     cluster="dc1",
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[EnumBootstrapErrorCode] = None,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        """Initialize RuntimeHostError with structured fields.

        Args:
            message: Human-readable error message
            error_code: Error code (defaults to OPERATION_FAILED)
            context: Bundled infrastructure context (transport_type, operation, etc.)
            **extra_context: Additional context information
        """
        structured_context: dict[str, object] = dict(extra_context)

        correlation_id = None
        if context is not None:
            if context.transport_type is not None:
                structured_context["transport_type"] = context.transport_type
            if context.operation is not None:
                structured_context["operation"] = context.operation
            if context.target_name is not None:
                structured_context["target_name"] = context.target_name
            correlation_id = context.correlation_id

        super().__init__(message)
        self.model = ModelErrorDetails(
            message=message,
            error_code=error_code or EnumBootstrapErrorCode.OPERATION_FAILED,
            correlation_id=correlation_id,
            context=structured_context,
        )

    @property
    def error_code(self) -> EnumBootstrapErrorCode:
        return self.model.error_code

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self.model.correlation_id


class ProtocolConfigurationError(RuntimeHostError):
    """Raised when configuration or topology validation fails.

    Used for configuration parsing errors, missing required fields, and
    unsupported feature combinations (e.g. Kubernetes auth with peering).

    Example:
        >>> raise ProtocolConfigurationError(
        ...     "primary boot mode only applies to traditional federation",
        ...     context=context,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.INVALID_CONFIGURATION,
            context=context,
            **extra_context,
        )


class SecretResolutionError(RuntimeHostError):
    """Raised when a cached secret cannot be read, written or removed.

    Example:
        >>> raise SecretResolutionError(
        ...     "Failed to persist cached secret",
        ...     context=context,
        ...     secret_name="master-token",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.RESOURCE_NOT_FOUND,
            context=context,
            **extra_context,
        )


class InfraConnectionError(RuntimeHostError):
    """Raised when a control-plane endpoint cannot be reached or rejects a call.

    Example:
        >>> raise InfraConnectionError(
        ...     "Failed to connect to Consul",
        ...     context=context,
        ...     host="10.0.1.11",
        ...     port=8500,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.CONNECTION_ERROR,
            context=context,
            **extra_context,
        )


class InfraTimeoutError(RuntimeHostError):
    """Raised when an infrastructure operation exceeds its time budget.

    Example:
        >>> raise InfraTimeoutError(
        ...     "Consul request exceeded timeout",
        ...     context=context,
        ...     timeout_seconds=10,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.TIMEOUT_ERROR,
            context=context,
            **extra_context,
        )


class InfraAuthenticationError(RuntimeHostError):
    """Raised when the control plane rejects the presented credentials.

    Example:
        >>> raise InfraAuthenticationError(
        ...     "Consul ACL permission denied",
        ...     context=context,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.AUTHENTICATION_ERROR,
            context=context,
            **extra_context,
        )


class InfraUnavailableError(RuntimeHostError):
    """Raised when an infrastructure resource is unavailable.

    Example:
        >>> raise InfraUnavailableError(
        ...     "Client provider already closed",
        ...     context=context,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[ModelInfraErrorContext] = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.SERVICE_UNAVAILABLE,
            context=context,
            **extra_context,
        )


__all__ = [
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "SecretResolutionError",
    "InfraConnectionError",
    "InfraTimeoutError",
    "InfraAuthenticationError",
    "InfraUnavailableError",
]
