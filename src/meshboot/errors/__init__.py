# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""meshboot Errors Module.

Exports:
    ModelInfraErrorContext: Configuration model for bundled error context
    ModelErrorDetails: Structured error payload (``error.model``)
    RuntimeHostError: Base infrastructure error class
    ProtocolConfigurationError: Configuration/topology validation errors
    SecretResolutionError: Credential cache errors
    InfraConnectionError: Control-plane connection errors
    InfraConsulError: Non-success responses from the Consul API
    InfraTimeoutError: Infrastructure timeout errors
    InfraAuthenticationError: Credential rejection errors
    InfraUnavailableError: Unavailable resource errors
    BootstrapPhaseError: Structural failure of an orchestration phase
    CredentialRegistryError: Registry invariant violation (defect)
    MeshConvergenceTimeoutError: Final health wait exceeded its deadline

Error Sanitization Guidelines:
    NEVER include in error messages or context:
        - ACL tokens (management, agent, replication, service, peering)
        - Gossip keys or any other cached secret value

    SAFE to include:
        - Cluster, node, service and config entry names
        - Operation names and API paths (without query strings)
        - HTTP status codes and the control plane's error text
        - Correlation IDs
"""

from meshboot.errors.error_bootstrap import (
    BootstrapPhaseError,
    CredentialRegistryError,
    MeshConvergenceTimeoutError,
)
from meshboot.errors.error_consul import InfraConsulError
from meshboot.errors.infra_errors import (
    InfraAuthenticationError,
    InfraConnectionError,
    InfraTimeoutError,
    InfraUnavailableError,
    ProtocolConfigurationError,
    RuntimeHostError,
    SecretResolutionError,
)
from meshboot.errors.model_error_details import ModelErrorDetails
from meshboot.errors.model_infra_error_context import ModelInfraErrorContext

__all__: list[str] = [
    # Models
    "ModelErrorDetails",
    "ModelInfraErrorContext",
    # Error classes
    "RuntimeHostError",
    "ProtocolConfigurationError",
    "SecretResolutionError",
    "InfraConnectionError",
    "InfraConsulError",
    "InfraTimeoutError",
    "InfraAuthenticationError",
    "InfraUnavailableError",
    "BootstrapPhaseError",
    "CredentialRegistryError",
    "MeshConvergenceTimeoutError",
]
