# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bootstrap-specific error classes.

BootstrapPhaseError:
    Structural failure of one orchestration phase. Wraps the underlying API or
    configuration error with phase/cluster/kind context and aborts the run.

CredentialRegistryError:
    Defect-class failure: the credential registry was read before the phase
    that populates it, or a key was written twice. Never retried.

MeshConvergenceTimeoutError:
    The final mesh health wait did not converge before its deadline.
"""

from meshboot.enums import EnumBootstrapErrorCode, EnumCredentialKind
from meshboot.errors.infra_errors import InfraTimeoutError, RuntimeHostError
from meshboot.errors.model_infra_error_context import ModelInfraErrorContext


class BootstrapPhaseError(RuntimeHostError):
    """Raised when a bootstrap phase fails for a structural reason.

    Example:
        >>> raise BootstrapPhaseError(
        ...     "createAgentTokens failed",
        ...     phase="issue_agent_tokens",
        ...     cluster="dc2",
        ...     credential_kind=EnumCredentialKind.AGENT,
        ... ) from e
    """

    def __init__(
        self,
        message: str,
        phase: str,
        cluster: str | None = None,
        credential_kind: EnumCredentialKind | None = None,
        context: ModelInfraErrorContext | None = None,
        **extra_context: object,
    ) -> None:
        extra_context["phase"] = phase
        if cluster is not None:
            extra_context["cluster"] = cluster
        if credential_kind is not None:
            extra_context["credential_kind"] = credential_kind.value

        prefix = f"{phase}[{cluster}]" if cluster else phase
        super().__init__(
            message=f"{prefix}: {message}",
            error_code=EnumBootstrapErrorCode.OPERATION_FAILED,
            context=context,
            **extra_context,
        )
        self.phase = phase
        self.cluster = cluster
        self.credential_kind = credential_kind


class CredentialRegistryError(RuntimeHostError):
    """Raised on credential registry invariant violations (program defects)."""

    def __init__(
        self,
        message: str,
        context: ModelInfraErrorContext | None = None,
        **extra_context: object,
    ) -> None:
        super().__init__(
            message=message,
            error_code=EnumBootstrapErrorCode.INVARIANT_VIOLATION,
            context=context,
            **extra_context,
        )


class MeshConvergenceTimeoutError(InfraTimeoutError):
    """Raised when the mesh did not become healthy before the deadline."""

    def __init__(
        self,
        message: str,
        cluster: str,
        context: ModelInfraErrorContext | None = None,
        **extra_context: object,
    ) -> None:
        extra_context["cluster"] = cluster
        super().__init__(message=message, context=context, **extra_context)
        self.cluster = cluster


__all__ = [
    "BootstrapPhaseError",
    "CredentialRegistryError",
    "MeshConvergenceTimeoutError",
]
