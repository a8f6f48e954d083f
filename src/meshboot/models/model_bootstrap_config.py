# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Static bootstrap configuration.

Describes which security features are enabled, optional pre-seeded secrets,
and the user-defined config entries per cluster. Secrets are held as
``SecretStr`` so that dumping or logging the configuration never reveals them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from meshboot.models.model_config_entry import ModelConfigEntry
from meshboot.models.model_partition import ModelPartition


class ModelBootstrapConfig(BaseModel):
    """Security features, seeded secrets and desired config entries.

    Attributes:
        security_disable_acls: Skip ACL bootstrap and every token step
        security_disable_default_intentions: Do not synthesise allow intentions
        encryption_gossip: Derive and keep a shared gossip encryption key
        enterprise_enabled: Multi-tenancy (partitions/namespaces) is available
        enterprise_partitions: Partitions and namespaces that should exist
        enterprise_disable_partitions: Enterprise binary with partitions off
        kubernetes_enabled: Use the Kubernetes auth method instead of service tokens
        prometheus_enabled: Synthesise a proxy-defaults entry exposing Envoy metrics
        initial_master_token: Pre-seeded management token
        agent_master_token: Agent-local management token (derived if absent)
        gossip_key: Gossip encryption key (derived if absent)
        config_entries: cluster name -> user-defined config entries
        api_scheme: Scheme of the control plane HTTP API
        api_port: Port of the control plane HTTP API
        request_timeout_seconds: Per-request HTTP timeout
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    security_disable_acls: bool = False
    security_disable_default_intentions: bool = False
    encryption_gossip: bool = False
    enterprise_enabled: bool = False
    enterprise_partitions: list[ModelPartition] = Field(
        default_factory=lambda: [ModelPartition()]
    )
    enterprise_disable_partitions: bool = False
    kubernetes_enabled: bool = False
    prometheus_enabled: bool = False
    initial_master_token: SecretStr | None = None
    agent_master_token: SecretStr | None = None
    gossip_key: SecretStr | None = None
    config_entries: dict[str, list[ModelConfigEntry]] = Field(default_factory=dict)
    api_scheme: Literal["http", "https"] = "http"
    api_port: int = Field(default=8500, ge=1, le=65535)
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def acls_enabled(self) -> bool:
        return not self.security_disable_acls

    def secret_value(self, field_name: str) -> str:
        """Plain value of one of the SecretStr fields, ``""`` when unset."""
        value = getattr(self, field_name)
        if value is None:
            return ""
        return value.get_secret_value()

    def entries_for(self, cluster: str) -> list[ModelConfigEntry]:
        return list(self.config_entries.get(cluster, []))


__all__ = ["ModelBootstrapConfig"]
