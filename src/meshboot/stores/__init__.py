# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Durable credential cache.

Stores:
    - StoreCredentialCacheFilesystem: Production store (``<dir>/<name>.val``)
    - StoreCredentialCacheInMemory: In-memory store for testing

Example:
    >>> from meshboot.stores import StoreCredentialCacheInMemory
    >>> cache = StoreCredentialCacheInMemory()
    >>> cache.load_or_derive("gossip-key", lambda: "k3y")
    'k3y'
    >>> cache.load_or_derive("gossip-key", lambda: "other")
    'k3y'
"""

from meshboot.stores.protocol_credential_cache import ProtocolCredentialCache
from meshboot.stores.store_filesystem import StoreCredentialCacheFilesystem
from meshboot.stores.store_inmemory import StoreCredentialCacheInMemory

__all__ = [
    "ProtocolCredentialCache",
    "StoreCredentialCacheFilesystem",
    "StoreCredentialCacheInMemory",
]
