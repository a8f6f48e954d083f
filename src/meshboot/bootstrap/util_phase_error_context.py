# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bootstrap phase error handling context manager.

Wraps one orchestration phase so that infrastructure failures surface as a
BootstrapPhaseError naming the phase, cluster and credential kind, chained to
the underlying error. No rollback is attempted; the run aborts.

Exception Mapping:
    | Raised inside the phase        | Surfaces as                 |
    |--------------------------------|-----------------------------|
    | BootstrapPhaseError            | unchanged (innermost wins)  |
    | CredentialRegistryError        | unchanged (program defect)  |
    | MeshConvergenceTimeoutError    | unchanged                   |
    | ProtocolConfigurationError     | unchanged                   |
    | RuntimeHostError (other)       | BootstrapPhaseError         |

Example:
    >>> with bootstrap_phase_error_context(
    ...     "issue_agent_tokens",
    ...     cluster="dc2",
    ...     credential_kind=EnumCredentialKind.AGENT,
    ...     correlation_id=run_id,
    ... ):
    ...     util_acl.create_or_update_token(client, token)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from meshboot.enums import EnumCredentialKind, EnumInfraTransportType
from meshboot.errors import (
    BootstrapPhaseError,
    CredentialRegistryError,
    MeshConvergenceTimeoutError,
    ModelInfraErrorContext,
    ProtocolConfigurationError,
    RuntimeHostError,
)

_PASSTHROUGH: tuple[type[RuntimeHostError], ...] = (
    BootstrapPhaseError,
    CredentialRegistryError,
    MeshConvergenceTimeoutError,
    ProtocolConfigurationError,
)


@contextmanager
def bootstrap_phase_error_context(
    phase: str,
    cluster: str | None = None,
    credential_kind: EnumCredentialKind | None = None,
    correlation_id: UUID | None = None,
) -> Iterator[ModelInfraErrorContext]:
    """Convert infrastructure errors raised by a phase into BootstrapPhaseError.

    Yields:
        Pre-built error context for use inside the phase.
    """
    context = ModelInfraErrorContext(
        transport_type=EnumInfraTransportType.CONSUL,
        operation=phase,
        target_name=cluster,
        correlation_id=correlation_id,
    )
    try:
        yield context
    except _PASSTHROUGH:
        raise
    except RuntimeHostError as e:
        raise BootstrapPhaseError(
            str(e),
            phase=phase,
            cluster=cluster,
            credential_kind=credential_kind,
            context=context,
            error_type=type(e).__name__,
        ) from e


__all__: list[str] = ["bootstrap_phase_error_context"]
