# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""meshboot - Bootstrap orchestrator for multi-cluster service mesh control planes.

Drives a freshly provisioned set of Consul clusters to a secured, linked and
healthy state:

- Leader election wait and ACL bootstrap per cluster
- Credential minting with deferred commit across datacenters
- WAN federation or cluster peering
- Central config entry reconciliation
- Whole-topology health convergence check

Key Components:
    - BootstrapOrchestrator: fixed-order bootstrap run (meshboot.bootstrap)
    - ConsulClient / ConsulClientProvider: HTTP control-plane access (meshboot.handlers)
    - StoreCredentialCacheFilesystem: durable secret cache (meshboot.stores)
    - RuntimeHostError hierarchy with ModelInfraErrorContext (meshboot.errors)
"""

__version__ = "0.1.0"

__all__: list[str] = ["__version__"]
