# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Pydantic models for topology, configuration and control-plane objects."""

from meshboot.models.model_acl_policy import ModelACLPolicy
from meshboot.models.model_acl_token import (
    ModelACLLink,
    ModelACLServiceIdentity,
    ModelACLToken,
)
from meshboot.models.model_bootstrap_config import ModelBootstrapConfig
from meshboot.models.model_catalog import ModelCatalogNode, ModelHealthInstance
from meshboot.models.model_cluster import ModelCluster
from meshboot.models.model_config_entry import ModelConfigEntry, ModelConfigEntryKey
from meshboot.models.model_credential_key import ModelCredentialKey
from meshboot.models.model_identifier import (
    DEFAULT_TENANT,
    ModelIdentifier,
    namespace_or_default,
    partition_or_default,
)
from meshboot.models.model_issue_result import ModelIssueResult
from meshboot.models.model_node import ModelAddress, ModelNode
from meshboot.models.model_partition import ModelPartition
from meshboot.models.model_service import ModelService
from meshboot.models.model_topology import ModelTopology

__all__: list[str] = [
    "DEFAULT_TENANT",
    "ModelACLLink",
    "ModelACLPolicy",
    "ModelACLServiceIdentity",
    "ModelACLToken",
    "ModelAddress",
    "ModelBootstrapConfig",
    "ModelCatalogNode",
    "ModelCluster",
    "ModelConfigEntry",
    "ModelConfigEntryKey",
    "ModelCredentialKey",
    "ModelHealthInstance",
    "ModelIdentifier",
    "ModelIssueResult",
    "ModelNode",
    "ModelPartition",
    "ModelService",
    "ModelTopology",
    "namespace_or_default",
    "partition_or_default",
]
