# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""HashiCorp Consul HTTP API client built on httpx.

Covers the subset of the public HTTP API the bootstrap orchestrator drives:

Supported Operations:
    - status: leader address
    - acl: bootstrap, token self-read, token/policy list/read/create/update,
      auth methods and binding rules
    - agent: token injection (agent, replication)
    - catalog/health: node listing, service listing, service health
    - config: central config entry list/set/delete
    - tenancy: admin partitions and namespaces (enterprise)
    - peering: read, generate token, establish
    - kv: put

Security Features:
    - The ACL token is sent in the ``X-Consul-Token`` header and never logged
    - Error messages carry the API path and the control plane's error text,
      never request headers or bodies

Error Mapping:
    - httpx.TimeoutException -> InfraTimeoutError
    - httpx.ConnectError / httpx.HTTPError -> InfraConnectionError
    - non-2xx response -> InfraConsulError
      (``Unexpected response code: <status> (<body>)``)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import SecretStr

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import (
    InfraConnectionError,
    InfraConsulError,
    InfraTimeoutError,
    ModelInfraErrorContext,
)
from meshboot.models import (
    ModelACLPolicy,
    ModelACLToken,
    ModelCatalogNode,
    ModelConfigEntry,
    ModelHealthInstance,
)

logger = logging.getLogger(__name__)

TOKEN_HEADER: str = "X-Consul-Token"

# Agent token slots accepted by PUT /v1/agent/token/<slot>
AGENT_TOKEN_SLOTS: frozenset[str] = frozenset(
    {"default", "agent", "agent_recovery", "replication", "config_file_service_registration"}
)


def _tenancy_params(namespace: str = "", partition: str = "") -> dict[str, str]:
    params: dict[str, str] = {}
    if namespace:
        params["ns"] = namespace
    if partition:
        params["partition"] = partition
    return params


class ConsulClient:
    """Synchronous client for one control-plane agent address.

    Instances are created and owned by ConsulClientProvider. Every call is a
    single blocking HTTP request; retry policy belongs to the caller.

    Example:
        >>> client = ConsulClient("http://10.0.1.11:8500", token=SecretStr("..."))
        >>> client.status_leader()
        '10.0.1.11:8300'
    """

    def __init__(
        self,
        base_url: str,
        token: SecretStr | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers: dict[str, str] = {}
        if token is not None and token.get_secret_value():
            headers[TOKEN_HEADER] = token.get_secret_value()
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._http = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._http.close()

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: dict[str, str] | None = None,
        json_body: object = None,
        content: str | None = None,
        token: SecretStr | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """Issue one request and map failures onto the infra error hierarchy.

        Returns:
            The response, or None when ``allow_not_found`` and the server
            answered 404.
        """
        ctx = ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.CONSUL,
            operation=operation,
            target_name=self._base_url,
        )
        headers = None
        if token is not None:
            headers = {TOKEN_HEADER: token.get_secret_value()}

        logger.debug(
            "Consul request",
            extra={"method": method, "path": path, "operation": operation},
        )
        try:
            response = self._http.request(
                method,
                path,
                params=params or None,
                json=json_body,
                content=content,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise InfraTimeoutError(
                f"Consul {operation} timed out after {self._timeout_seconds}s",
                context=ctx,
                timeout_seconds=self._timeout_seconds,
            ) from e
        except httpx.ConnectError as e:
            raise InfraConnectionError(
                f"Failed to connect to Consul at {self._base_url}", context=ctx
            ) from e
        except httpx.HTTPError as e:
            raise InfraConnectionError(
                f"HTTP error during Consul {operation}: {type(e).__name__}",
                context=ctx,
            ) from e

        if response.status_code == 404 and allow_not_found:
            return None
        if not response.is_success:
            body = response.text.strip()
            raise InfraConsulError(
                f"Unexpected response code: {response.status_code} ({body})",
                context=ctx,
                status_code=response.status_code,
                consul_path=path,
            )
        return response

    def _json(self, *args: Any, **kwargs: Any) -> Any:
        response = self._request(*args, **kwargs)
        if response is None or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------ #
    # Status
    # ------------------------------------------------------------------ #

    def status_leader(self) -> str:
        """Address of the current raft leader, or ``""`` while electing."""
        return self._json("GET", "/v1/status/leader", "status_leader") or ""

    # ------------------------------------------------------------------ #
    # ACL: bootstrap and tokens
    # ------------------------------------------------------------------ #

    def acl_bootstrap(self) -> ModelACLToken:
        data = self._json("PUT", "/v1/acl/bootstrap", "acl_bootstrap")
        return ModelACLToken.model_validate(data)

    def acl_token_read_self(
        self, token: SecretStr | None = None, stale: bool = False
    ) -> ModelACLToken:
        """Read the token presented on the request.

        Args:
            token: Overrides the client's token for this call only
            stale: Allow any server to answer without forwarding to the leader
        """
        params = {"stale": ""} if stale else None
        data = self._json(
            "GET", "/v1/acl/token/self", "acl_token_read_self", params=params, token=token
        )
        return ModelACLToken.model_validate(data)

    def acl_token_list(
        self, namespace: str = "", partition: str = ""
    ) -> list[ModelACLToken]:
        data = self._json(
            "GET",
            "/v1/acl/tokens",
            "acl_token_list",
            params=_tenancy_params(namespace, partition),
        )
        return [ModelACLToken.model_validate(item) for item in data or []]

    def acl_token_read(
        self, accessor_id: str, namespace: str = "", partition: str = ""
    ) -> ModelACLToken | None:
        data = self._json(
            "GET",
            f"/v1/acl/token/{accessor_id}",
            "acl_token_read",
            params=_tenancy_params(namespace, partition),
            allow_not_found=True,
        )
        return None if data is None else ModelACLToken.model_validate(data)

    def acl_token_create(self, token: ModelACLToken) -> ModelACLToken:
        data = self._json(
            "PUT", "/v1/acl/token", "acl_token_create", json_body=token.to_api()
        )
        return ModelACLToken.model_validate(data)

    def acl_token_update(self, token: ModelACLToken) -> ModelACLToken:
        data = self._json(
            "PUT",
            f"/v1/acl/token/{token.accessor_id}",
            "acl_token_update",
            json_body=token.to_api(),
        )
        return ModelACLToken.model_validate(data)

    # ------------------------------------------------------------------ #
    # ACL: policies
    # ------------------------------------------------------------------ #

    def acl_policy_list(
        self, namespace: str = "", partition: str = ""
    ) -> list[ModelACLPolicy]:
        data = self._json(
            "GET",
            "/v1/acl/policies",
            "acl_policy_list",
            params=_tenancy_params(namespace, partition),
        )
        return [ModelACLPolicy.model_validate(item) for item in data or []]

    def acl_policy_read(
        self, policy_id: str, namespace: str = "", partition: str = ""
    ) -> ModelACLPolicy | None:
        data = self._json(
            "GET",
            f"/v1/acl/policy/{policy_id}",
            "acl_policy_read",
            params=_tenancy_params(namespace, partition),
            allow_not_found=True,
        )
        return None if data is None else ModelACLPolicy.model_validate(data)

    def acl_policy_create(
        self, policy: ModelACLPolicy, partition: str = ""
    ) -> ModelACLPolicy:
        data = self._json(
            "PUT",
            "/v1/acl/policy",
            "acl_policy_create",
            params=_tenancy_params(partition=partition),
            json_body=policy.to_api(),
        )
        return ModelACLPolicy.model_validate(data)

    def acl_policy_update(
        self, policy: ModelACLPolicy, partition: str = ""
    ) -> ModelACLPolicy:
        data = self._json(
            "PUT",
            f"/v1/acl/policy/{policy.id}",
            "acl_policy_update",
            params=_tenancy_params(partition=partition),
            json_body=policy.to_api(),
        )
        return ModelACLPolicy.model_validate(data)

    # ------------------------------------------------------------------ #
    # ACL: auth methods and binding rules
    # ------------------------------------------------------------------ #

    def acl_auth_method_read(self, name: str) -> dict[str, Any] | None:
        return self._json(
            "GET",
            f"/v1/acl/auth-method/{name}",
            "acl_auth_method_read",
            allow_not_found=True,
        )

    def acl_auth_method_create(self, method: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "PUT", "/v1/acl/auth-method", "acl_auth_method_create", json_body=method
        )

    def acl_auth_method_update(self, method: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/v1/acl/auth-method/{method['Name']}",
            "acl_auth_method_update",
            json_body=method,
        )

    def acl_binding_rule_list(self, auth_method: str) -> list[dict[str, Any]]:
        return (
            self._json(
                "GET",
                "/v1/acl/binding-rules",
                "acl_binding_rule_list",
                params={"authmethod": auth_method},
            )
            or []
        )

    def acl_binding_rule_create(self, rule: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "PUT", "/v1/acl/binding-rule", "acl_binding_rule_create", json_body=rule
        )

    def acl_binding_rule_update(self, rule: dict[str, Any]) -> dict[str, Any]:
        return self._json(
            "PUT",
            f"/v1/acl/binding-rule/{rule['ID']}",
            "acl_binding_rule_update",
            json_body=rule,
        )

    # ------------------------------------------------------------------ #
    # Agent
    # ------------------------------------------------------------------ #

    def agent_update_token(self, slot: str, secret: SecretStr) -> None:
        """Install ``secret`` into the agent's ``slot`` token (agent, replication, ...)."""
        if slot not in AGENT_TOKEN_SLOTS:
            raise ValueError(f"unknown agent token slot: {slot}")
        self._request(
            "PUT",
            f"/v1/agent/token/{slot}",
            f"agent_update_token_{slot}",
            json_body={"Token": secret.get_secret_value()},
        )

    # ------------------------------------------------------------------ #
    # Catalog and health
    # ------------------------------------------------------------------ #

    def catalog_nodes(
        self, datacenter: str = "", partition: str = ""
    ) -> list[ModelCatalogNode]:
        params = _tenancy_params(partition=partition)
        if datacenter:
            params["dc"] = datacenter
        data = self._json("GET", "/v1/catalog/nodes", "catalog_nodes", params=params)
        return [ModelCatalogNode.model_validate(item) for item in data or []]

    def catalog_services(
        self, namespace: str = "", partition: str = ""
    ) -> dict[str, list[str]]:
        """Service name -> tags for one tenant."""
        return (
            self._json(
                "GET",
                "/v1/catalog/services",
                "catalog_services",
                params=_tenancy_params(namespace, partition),
            )
            or {}
        )

    def health_service(
        self, service: str, namespace: str = "", partition: str = ""
    ) -> list[ModelHealthInstance]:
        data = self._json(
            "GET",
            f"/v1/health/service/{service}",
            "health_service",
            params=_tenancy_params(namespace, partition),
        )
        return [ModelHealthInstance.from_api(item) for item in data or []]

    # ------------------------------------------------------------------ #
    # Config entries
    # ------------------------------------------------------------------ #

    def config_entries_list(
        self, kind: str, namespace: str = "", partition: str = ""
    ) -> list[ModelConfigEntry]:
        data = self._json(
            "GET",
            f"/v1/config/{kind}",
            "config_entries_list",
            params=_tenancy_params(namespace, partition),
        )
        return [ModelConfigEntry.model_validate(item) for item in data or []]

    def config_entry_set(self, entry: ModelConfigEntry) -> None:
        self._request(
            "PUT",
            "/v1/config",
            "config_entry_set",
            params=_tenancy_params(entry.namespace, entry.partition),
            json_body=entry.to_api(),
        )

    def config_entry_delete(
        self, kind: str, name: str, namespace: str = "", partition: str = ""
    ) -> None:
        self._request(
            "DELETE",
            f"/v1/config/{kind}/{name}",
            "config_entry_delete",
            params=_tenancy_params(namespace, partition),
        )

    # ------------------------------------------------------------------ #
    # Tenancy (enterprise)
    # ------------------------------------------------------------------ #

    def partition_list(self) -> list[str]:
        data = self._json("GET", "/v1/partitions", "partition_list")
        return [item["Name"] for item in data or []]

    def partition_create(self, name: str) -> None:
        self._request(
            "PUT", "/v1/partition", "partition_create", json_body={"Name": name}
        )

    def partition_delete(self, name: str) -> None:
        self._request("DELETE", f"/v1/partition/{name}", "partition_delete")

    def namespace_list(self, partition: str = "") -> list[str]:
        data = self._json(
            "GET",
            "/v1/namespaces",
            "namespace_list",
            params=_tenancy_params(partition=partition),
        )
        return [item["Name"] for item in data or []]

    def namespace_create(
        self, name: str, partition: str = "", default_policies: list[str] | None = None
    ) -> None:
        body: dict[str, Any] = {"Name": name}
        if partition:
            body["Partition"] = partition
        if default_policies:
            body["ACLs"] = {"PolicyDefaults": [{"Name": p} for p in default_policies]}
        self._request("PUT", "/v1/namespace", "namespace_create", json_body=body)

    def namespace_delete(self, name: str, partition: str = "") -> None:
        self._request(
            "DELETE",
            f"/v1/namespace/{name}",
            "namespace_delete",
            params=_tenancy_params(partition=partition),
        )

    # ------------------------------------------------------------------ #
    # Peering
    # ------------------------------------------------------------------ #

    def peering_read(self, name: str, partition: str = "") -> dict[str, Any] | None:
        return self._json(
            "GET",
            f"/v1/peering/{name}",
            "peering_read",
            params=_tenancy_params(partition=partition),
            allow_not_found=True,
        )

    def peering_generate_token(self, peer_name: str, partition: str = "") -> SecretStr:
        body: dict[str, Any] = {"PeerName": peer_name}
        if partition:
            body["Partition"] = partition
        data = self._json(
            "POST", "/v1/peering/token", "peering_generate_token", json_body=body
        )
        return SecretStr(data["PeeringToken"])

    def peering_establish(
        self, peer_name: str, peering_token: SecretStr, partition: str = ""
    ) -> None:
        body: dict[str, Any] = {
            "PeerName": peer_name,
            "PeeringToken": peering_token.get_secret_value(),
        }
        if partition:
            body["Partition"] = partition
        self._request(
            "POST", "/v1/peering/establish", "peering_establish", json_body=body
        )

    # ------------------------------------------------------------------ #
    # KV
    # ------------------------------------------------------------------ #

    def kv_put(self, key: str, value: str, datacenter: str = "") -> bool:
        params = {"dc": datacenter} if datacenter else None
        return bool(
            self._json(
                "PUT", f"/v1/kv/{key}", "kv_put", params=params, content=value
            )
        )


__all__: list[str] = ["AGENT_TOKEN_SLOTS", "TOKEN_HEADER", "ConsulClient"]
