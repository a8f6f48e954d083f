# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Bootstrap orchestration.

Exports:
    BootstrapOrchestrator: Fixed-order bootstrap over a compiled topology
    BootstrapContext: Run-scoped state shared by the bootstrap steps
    CredentialRegistry: Write-once in-memory map of minted credentials
    LocalSecrets: Agent master token / gossip key derivation
    RunOnceMarker: ``<name>.done`` markers for one-time steps
    poll_until: Fixed-interval polling loop used by every waiter
"""

from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.local_secrets import INIT_MARKER, LocalSecrets, RunOnceMarker
from meshboot.bootstrap.orchestrator import BootstrapOrchestrator
from meshboot.bootstrap.registry_credential import CredentialRegistry
from meshboot.bootstrap.util_polling import poll_until

__all__: list[str] = [
    "INIT_MARKER",
    "BootstrapContext",
    "BootstrapOrchestrator",
    "CredentialRegistry",
    "LocalSecrets",
    "RunOnceMarker",
    "poll_until",
]
