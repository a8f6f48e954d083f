# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Consul-Specific Infrastructure Error Class.

Defines InfraConsulError, raised when the control plane answers an API call
with a non-success status code.
"""

from meshboot.errors.infra_errors import InfraConnectionError
from meshboot.errors.model_infra_error_context import ModelInfraErrorContext


class InfraConsulError(InfraConnectionError):
    """Error returned by the Consul HTTP API.

    The message mirrors the control plane's own client format,
    ``Unexpected response code: <status> (<body>)``, so that transient
    startup conditions can be recognised by substring matching on ``str(error)``.

    Example:
        >>> context = ModelInfraErrorContext(
        ...     transport_type=EnumInfraTransportType.CONSUL,
        ...     operation="acl_token_read_self",
        ...     target_name="10.0.1.11",
        ... )
        >>> raise InfraConsulError(
        ...     "Unexpected response code: 403 (ACL not found)",
        ...     context=context,
        ...     status_code=403,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: ModelInfraErrorContext | None = None,
        status_code: int | None = None,
        consul_path: str | None = None,
        **extra_context: object,
    ) -> None:
        """Initialize InfraConsulError with Consul-specific context.

        Args:
            message: Human-readable error message
            context: Bundled infrastructure context (should use CONSUL transport_type)
            status_code: HTTP status code returned by the API
            consul_path: API path that was called (no query string, no token)
            **extra_context: Additional context information
        """
        if status_code is not None:
            extra_context["status_code"] = status_code
        if consul_path is not None:
            extra_context["consul_path"] = consul_path

        super().__init__(
            message=message,
            context=context,
            **extra_context,
        )
        self.status_code = status_code


__all__: list[str] = [
    "InfraConsulError",
]
