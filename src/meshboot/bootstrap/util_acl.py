# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""ACL create-or-update helpers and policy rule templates.

Matching rules make every helper idempotent across runs:
    - policies are matched by name
    - tokens are matched by description; a match keeps its accessor and
      secret IDs, so re-running never rotates a credential
    - auth methods are matched by name, binding rules by description
"""

from __future__ import annotations

from typing import Any

from meshboot.handlers import ConsulClient
from meshboot.models import ModelACLPolicy, ModelACLToken, ModelNode

ANONYMOUS_TOKEN_ACCESSOR_ID: str = "00000000-0000-0000-0000-000000000002"
ANONYMOUS_POLICY_NAME: str = "anonymous"
REPLICATION_POLICY_NAME: str = "acl-replication"
CROSS_NAMESPACE_CATALOG_READ_POLICY_NAME: str = "cross-ns-catalog-read"


# ---------------------------------------------------------------------- #
# Lookups
# ---------------------------------------------------------------------- #


def get_policy_by_name(
    client: ConsulClient, name: str, partition: str = ""
) -> ModelACLPolicy | None:
    for entry in client.acl_policy_list(partition=partition):
        if entry.name == name:
            return client.acl_policy_read(entry.id, partition=partition)
    return None


def get_token_by_description(
    client: ConsulClient, description: str, namespace: str = "", partition: str = ""
) -> ModelACLToken | None:
    for entry in client.acl_token_list(namespace=namespace, partition=partition):
        if entry.description == description:
            return client.acl_token_read(
                entry.accessor_id, namespace=namespace, partition=partition
            )
    return None


def get_binding_rule_by_description(
    client: ConsulClient, auth_method: str, description: str
) -> dict[str, Any] | None:
    for rule in client.acl_binding_rule_list(auth_method):
        if rule.get("Description") == description:
            return rule
    return None


# ---------------------------------------------------------------------- #
# Create-or-update
# ---------------------------------------------------------------------- #


def create_or_update_policy(
    client: ConsulClient, policy: ModelACLPolicy, partition: str = ""
) -> ModelACLPolicy:
    current = get_policy_by_name(client, policy.name, partition=partition)
    if current is not None:
        policy = policy.model_copy(update={"id": current.id})
    if policy.id:
        return client.acl_policy_update(policy, partition=partition)
    return client.acl_policy_create(policy, partition=partition)


def create_or_update_token(client: ConsulClient, token: ModelACLToken) -> ModelACLToken:
    """Upsert a token by description.

    A token with a preset ``accessor_id`` and no description match (e.g. the
    built-in anonymous token) is updated in place.
    """
    current = get_token_by_description(
        client, token.description, namespace=token.namespace, partition=token.partition
    )
    if current is not None:
        token = token.model_copy(
            update={"accessor_id": current.accessor_id, "secret_id": current.secret_id}
        )
    if token.accessor_id:
        return client.acl_token_update(token)
    return client.acl_token_create(token)


def create_or_update_auth_method(
    client: ConsulClient, method: dict[str, Any]
) -> dict[str, Any]:
    if client.acl_auth_method_read(method["Name"]) is not None:
        return client.acl_auth_method_update(method)
    return client.acl_auth_method_create(method)


def create_or_update_binding_rule(
    client: ConsulClient, rule: dict[str, Any]
) -> dict[str, Any]:
    current = get_binding_rule_by_description(
        client, rule["AuthMethod"], rule["Description"]
    )
    if current is not None:
        rule = {**rule, "ID": current["ID"]}
    if rule.get("ID"):
        return client.acl_binding_rule_update(rule)
    return client.acl_binding_rule_create(rule)


# ---------------------------------------------------------------------- #
# Policy rules
# ---------------------------------------------------------------------- #


def replication_policy_rules(enterprise: bool) -> str:
    rules = """
acl      = "write"
operator = "write"
service_prefix "" {
  policy     = "read"
  intentions = "read"
}
"""
    if enterprise:
        rules += """
namespace_prefix "" {
  service_prefix "" {
    policy     = "read"
    intentions = "read"
  }
}
"""
    return rules


def mesh_gateway_policy_rules(enterprise: bool, peered: bool) -> str:
    service_rules = """
service "mesh-gateway" {
  policy = "write"
}
service_prefix "" {
  policy = "read"
}
node_prefix "" {
  policy = "read"
}
"""
    agent_rules = """
agent_prefix "" {
  policy = "read"
}
"""
    mesh_rules = 'mesh = "write"\n' if peered else ""
    if not enterprise:
        return service_rules + agent_rules + mesh_rules
    rules = f'namespace_prefix "" {{{service_rules}}}\n' + agent_rules + mesh_rules
    return f'partition "default" {{\n{rules}}}\n'


def agent_policy_rules(node: ModelNode, enterprise: bool) -> str:
    rules = f"""
node "{node.pod_name}" {{ policy = "write" }}
service_prefix "" {{ policy = "read" }}
"""
    if enterprise:
        return f'partition "{node.partition}" {{{rules}}}\n'
    return rules


def anonymous_policy_rules(enterprise: bool) -> str:
    rules = """
node_prefix "" { policy = "read" }
service_prefix "" { policy = "read" }
"""
    if enterprise:
        return f'partition_prefix "" {{\nnamespace_prefix "" {{{rules}}}\n}}\n'
    return rules


def cross_namespace_catalog_read_rules() -> str:
    return """
namespace_prefix "" {
  node_prefix "" { policy = "read" }
  service_prefix "" { policy = "read" }
}
"""


__all__: list[str] = [
    "ANONYMOUS_POLICY_NAME",
    "ANONYMOUS_TOKEN_ACCESSOR_ID",
    "CROSS_NAMESPACE_CATALOG_READ_POLICY_NAME",
    "REPLICATION_POLICY_NAME",
    "agent_policy_rules",
    "anonymous_policy_rules",
    "create_or_update_auth_method",
    "create_or_update_binding_rule",
    "create_or_update_policy",
    "create_or_update_token",
    "cross_namespace_catalog_read_rules",
    "get_binding_rule_by_description",
    "get_policy_by_name",
    "get_token_by_description",
    "mesh_gateway_policy_rules",
    "replication_policy_rules",
]
