# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""In-memory fake control plane for bootstrap tests.

FakeMesh models just enough of a set of Consul clusters for the orchestrator
to run end to end without any network:

    - one ACL store per cluster (peering) or one shared store (federation,
      standing in for ACL replication)
    - catalog, health, config entries, partitions/namespaces, peerings, KV
    - knobs for start-up behaviour: leader election delay, "ACL system still
      booting" responses, replication lag on secondary servers, agents that
      sync their catalog entry late, unhealthy services, unknown config
      entry kinds, and one-shot API or connection failures

Every API call is appended to ``mesh.events`` as ``(cluster, operation)``;
RecordingCache appends ``("cache", "save:<name>")`` etc. to the same list so
tests can assert on the relative order of API calls and durable writes.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Any

import pytest
from pydantic import SecretStr

from meshboot.bootstrap import INIT_MARKER, BootstrapOrchestrator, RunOnceMarker
from meshboot.bootstrap.util_acl import ANONYMOUS_TOKEN_ACCESSOR_ID
from meshboot.enums import EnumCheckStatus, EnumInfraTransportType, EnumNodeKind
from meshboot.errors import InfraConnectionError, InfraConsulError, ModelInfraErrorContext
from meshboot.models import (
    DEFAULT_TENANT,
    ModelACLPolicy,
    ModelACLToken,
    ModelAddress,
    ModelBootstrapConfig,
    ModelCatalogNode,
    ModelCluster,
    ModelConfigEntry,
    ModelConfigEntryKey,
    ModelHealthInstance,
    ModelIdentifier,
    ModelNode,
    ModelService,
    ModelTopology,
)
from meshboot.stores import StoreCredentialCacheInMemory

AGENT_MASTER_TOKEN = "agent-master-0000"
NOT_BOOTSTRAPPED = (
    "Unexpected response code: 403 (ACL system must be bootstrapped before "
    "making any requests that require authorization: ACL not found)"
)
LEGACY_MODE = "Unexpected response code: 500 (The ACL system is currently in legacy mode.)"
ACL_NOT_FOUND = "Unexpected response code: 403 (ACL not found)"


def consul_error(message: str, status_code: int = 500) -> InfraConsulError:
    return InfraConsulError(
        message,
        context=ModelInfraErrorContext(
            transport_type=EnumInfraTransportType.CONSUL, operation="fake"
        ),
        status_code=status_code,
    )


# ---------------------------------------------------------------------- #
# Fake control plane state
# ---------------------------------------------------------------------- #


class FakeAcl:
    """ACL store of one cluster (or of a whole federation)."""

    def __init__(self) -> None:
        self.bootstrapped = False
        self.booting_attempts = 0
        self.tokens: dict[str, ModelACLToken] = {
            ANONYMOUS_TOKEN_ACCESSOR_ID: ModelACLToken(
                accessor_id=ANONYMOUS_TOKEN_ACCESSOR_ID,
                secret_id="anonymous",
                description="Anonymous Token",
            )
        }
        self.policies: dict[str, tuple[str, ModelACLPolicy]] = {}
        self.auth_methods: dict[str, dict[str, Any]] = {}
        self.binding_rules: dict[str, dict[str, Any]] = {}

    def seed_management(self, secret: str) -> None:
        accessor = str(uuid.uuid4())
        self.tokens[accessor] = ModelACLToken(
            accessor_id=accessor, secret_id=secret, description="Initial Management Token"
        )
        self.bootstrapped = True

    def check_booting(self) -> None:
        if self.booting_attempts > 0:
            self.booting_attempts -= 1
            raise consul_error(LEGACY_MODE)

    def by_secret(self, secret: str) -> ModelACLToken | None:
        for token in self.tokens.values():
            if token.secret_id == secret:
                return token
        return None


class FakeCluster:
    """Catalog, config and tenancy state of one cluster."""

    def __init__(self, name: str, acl: FakeAcl) -> None:
        self.name = name
        self.acl = acl
        self.leader = ""
        self.leader_delay = 0
        self.replication_lag: dict[str, int] = {}
        self.unhealthy: set[str] = set()
        self.unknown_kinds: set[str] = set()
        self.fail_operations: dict[str, str] = {}
        self.queued_errors: dict[str, list[Exception]] = {}
        self.unsynced_listings: dict[str, int] = {}
        self.unregistered_listings: dict[str, int] = {}
        self.catalog_nodes: list[ModelCatalogNode] = []
        self.services: list[ModelIdentifier] = []
        self.config_entries: dict[ModelConfigEntryKey, ModelConfigEntry] = {}
        self.partitions: set[str] = {DEFAULT_TENANT}
        self.namespaces: dict[str, set[str]] = {DEFAULT_TENANT: {DEFAULT_TENANT}}
        self.namespace_defaults: dict[tuple[str, str], list[str]] = {}
        self.peerings: dict[str, dict[str, Any]] = {}
        self.kv: dict[str, str] = {}
        self.agent_tokens: dict[str, dict[str, str]] = {}

    def fail_next(
        self, operation: str, message: str, status_code: int = 500, times: int = 1
    ) -> None:
        """Answer the next ``times`` calls of ``operation`` with an API error."""
        self.queued_errors.setdefault(operation, []).extend(
            consul_error(message, status_code) for _ in range(times)
        )

    def disconnect_next(self, operation: str) -> None:
        """Fail the next call of ``operation`` before it reaches the server."""
        self.queued_errors.setdefault(operation, []).append(
            InfraConnectionError(
                f"Failed to connect to Consul in {self.name}",
                context=ModelInfraErrorContext(
                    transport_type=EnumInfraTransportType.CONSUL, operation=operation
                ),
            )
        )


class FakeMesh:
    """Every cluster of a topology plus the shared event log."""

    def __init__(self, topology: ModelTopology, enterprise: bool = False) -> None:
        self.topology = topology
        self.enterprise = enterprise
        self.events: list[tuple[str, str]] = []
        shared = FakeAcl() if topology.link_with_federation else None
        self.clusters: dict[str, FakeCluster] = {}
        for cluster in topology.clusters:
            self.clusters[cluster.name] = FakeCluster(cluster.name, shared or FakeAcl())
        self.address_owner: dict[str, ModelNode] = {}
        for node in topology.nodes:
            self.address_owner[node.local_address] = node
            fake = self.clusters[node.cluster]
            if node.is_agent:
                fake.catalog_nodes.append(
                    ModelCatalogNode(
                        node=node.pod_name,
                        partition=node.partition,
                        tagged_addresses={"lan": node.local_address},
                    )
                )
            if node.service is not None and node.service.id not in fake.services:
                fake.services.append(node.service.id)
        for name, fake in self.clusters.items():
            fake.leader = f"{topology.leader_address(name)}:8300"

    def cluster(self, name: str) -> FakeCluster:
        return self.clusters[name]

    def record(self, cluster: str, operation: str) -> None:
        self.events.append((cluster, operation))

    def count(self, operation: str, cluster: str | None = None) -> int:
        return sum(
            1 for c, op in self.events if op == operation and (cluster is None or c == cluster)
        )

    def operations(self) -> Counter[str]:
        return Counter(op for _, op in self.events)


# ---------------------------------------------------------------------- #
# Fake client surface
# ---------------------------------------------------------------------- #


class FakeConsulClient:
    """Implements the ConsulClient methods used by the bootstrap package."""

    def __init__(self, mesh: FakeMesh, node: ModelNode, token: SecretStr | None) -> None:
        self._mesh = mesh
        self._node = node
        self._cluster = mesh.cluster(node.cluster)
        self.token = token

    def _record(self, operation: str) -> None:
        self._mesh.record(self._cluster.name, operation)
        queued = self._cluster.queued_errors.get(operation)
        if queued:
            raise queued.pop(0)
        failure = self._cluster.fail_operations.get(operation.split(":", 1)[0])
        if failure is not None:
            raise consul_error(failure)

    @property
    def _acl(self) -> FakeAcl:
        return self._cluster.acl

    # status

    def status_leader(self) -> str:
        self._record("status_leader")
        if self._cluster.leader_delay > 0:
            self._cluster.leader_delay -= 1
            return ""
        return self._cluster.leader

    # acl tokens

    def acl_bootstrap(self) -> ModelACLToken:
        self._record("acl_bootstrap")
        self._acl.check_booting()
        if self._acl.bootstrapped:
            raise consul_error(
                "Unexpected response code: 403 (Permission denied: ACL bootstrap no longer allowed)",
                403,
            )
        secret = str(uuid.uuid4())
        self._acl.seed_management(secret)
        return self._acl.by_secret(secret)

    def acl_token_read_self(
        self, token: SecretStr | None = None, stale: bool = False
    ) -> ModelACLToken:
        self._record(f"acl_token_read_self:{self._node.name}")
        presented = token or self.token
        self._acl.check_booting()
        if not self._acl.bootstrapped:
            raise consul_error(ACL_NOT_FOUND if presented else NOT_BOOTSTRAPPED, 403)
        lag = self._cluster.replication_lag.get(self._node.name, 0)
        if stale and lag > 0:
            self._cluster.replication_lag[self._node.name] = lag - 1
            raise consul_error(ACL_NOT_FOUND, 403)
        found = self._acl.by_secret(presented.get_secret_value()) if presented else None
        if found is None:
            raise consul_error(ACL_NOT_FOUND, 403)
        return found

    def acl_token_list(self, namespace: str = "", partition: str = "") -> list[ModelACLToken]:
        self._record("acl_token_list")
        return [
            t.model_copy(update={"secret_id": ""})
            for t in self._acl.tokens.values()
            if t.namespace == namespace and t.partition == partition
        ]

    def acl_token_read(
        self, accessor_id: str, namespace: str = "", partition: str = ""
    ) -> ModelACLToken | None:
        self._record("acl_token_read")
        return self._acl.tokens.get(accessor_id)

    def acl_token_create(self, token: ModelACLToken) -> ModelACLToken:
        self._record("acl_token_create")
        created = token.model_copy(
            update={
                "accessor_id": str(uuid.uuid4()),
                "secret_id": token.secret_id or str(uuid.uuid4()),
            }
        )
        self._acl.tokens[created.accessor_id] = created
        return created

    def acl_token_update(self, token: ModelACLToken) -> ModelACLToken:
        self._record("acl_token_update")
        current = self._acl.tokens.get(token.accessor_id)
        if current is None:
            raise consul_error(ACL_NOT_FOUND, 403)
        updated = token.model_copy(update={"secret_id": token.secret_id or current.secret_id})
        self._acl.tokens[token.accessor_id] = updated
        return updated

    # acl policies

    def acl_policy_list(self, namespace: str = "", partition: str = "") -> list[ModelACLPolicy]:
        self._record("acl_policy_list")
        return [p for part, p in self._acl.policies.values() if part == partition]

    def acl_policy_read(
        self, policy_id: str, namespace: str = "", partition: str = ""
    ) -> ModelACLPolicy | None:
        self._record("acl_policy_read")
        entry = self._acl.policies.get(policy_id)
        return None if entry is None else entry[1]

    def acl_policy_create(self, policy: ModelACLPolicy, partition: str = "") -> ModelACLPolicy:
        self._record("acl_policy_create")
        created = policy.model_copy(update={"id": str(uuid.uuid4())})
        self._acl.policies[created.id] = (partition, created)
        return created

    def acl_policy_update(self, policy: ModelACLPolicy, partition: str = "") -> ModelACLPolicy:
        self._record("acl_policy_update")
        self._acl.policies[policy.id] = (partition, policy)
        return policy

    # auth methods

    def acl_auth_method_read(self, name: str) -> dict[str, Any] | None:
        self._record("acl_auth_method_read")
        return self._acl.auth_methods.get(name)

    def acl_auth_method_create(self, method: dict[str, Any]) -> dict[str, Any]:
        self._record("acl_auth_method_create")
        self._acl.auth_methods[method["Name"]] = method
        return method

    def acl_auth_method_update(self, method: dict[str, Any]) -> dict[str, Any]:
        self._record("acl_auth_method_update")
        self._acl.auth_methods[method["Name"]] = method
        return method

    def acl_binding_rule_list(self, auth_method: str) -> list[dict[str, Any]]:
        self._record("acl_binding_rule_list")
        return [r for r in self._acl.binding_rules.values() if r["AuthMethod"] == auth_method]

    def acl_binding_rule_create(self, rule: dict[str, Any]) -> dict[str, Any]:
        self._record("acl_binding_rule_create")
        created = {**rule, "ID": str(uuid.uuid4())}
        self._acl.binding_rules[created["ID"]] = created
        return created

    def acl_binding_rule_update(self, rule: dict[str, Any]) -> dict[str, Any]:
        self._record("acl_binding_rule_update")
        self._acl.binding_rules[rule["ID"]] = rule
        return rule

    # agent

    def agent_update_token(self, slot: str, secret: SecretStr) -> None:
        self._record(f"agent_update_token_{slot}:{self._node.name}")
        self._cluster.agent_tokens.setdefault(self._node.name, {})[slot] = (
            secret.get_secret_value()
        )

    # catalog and health

    def catalog_nodes(self, datacenter: str = "", partition: str = "") -> list[ModelCatalogNode]:
        self._record("catalog_nodes")
        listed: list[ModelCatalogNode] = []
        for n in self._cluster.catalog_nodes:
            if partition and (n.partition or DEFAULT_TENANT) != partition:
                continue
            if self._countdown(self._cluster.unregistered_listings, n.node):
                continue
            if self._countdown(self._cluster.unsynced_listings, n.node):
                n = n.model_copy(update={"tagged_addresses": {}})
            listed.append(n)
        return listed

    @staticmethod
    def _countdown(remaining: dict[str, int], key: str) -> bool:
        """True (and one fewer left) while ``key`` still has listings to sit out."""
        left = remaining.get(key, 0)
        if left <= 0:
            return False
        remaining[key] = left - 1
        return True

    def catalog_services(self, namespace: str = "", partition: str = "") -> dict[str, list[str]]:
        self._record("catalog_services")
        return {
            sid.name: []
            for sid in self._cluster.services
            if (not namespace or sid.namespace == namespace)
            and (not partition or sid.partition == partition)
        }

    def health_service(
        self, service: str, namespace: str = "", partition: str = ""
    ) -> list[ModelHealthInstance]:
        self._record("health_service")
        status = (
            EnumCheckStatus.CRITICAL if service in self._cluster.unhealthy else EnumCheckStatus.PASSING
        )
        return [
            ModelHealthInstance(
                node=f"{service}-node",
                statuses=[EnumCheckStatus.PASSING, status],
            )
        ]

    # config entries

    def config_entries_list(
        self, kind: str, namespace: str = "", partition: str = ""
    ) -> list[ModelConfigEntry]:
        self._record(f"config_entries_list:{kind}")
        if kind in self._cluster.unknown_kinds:
            raise consul_error(
                f"Unexpected response code: 500 (invalid config entry kind: {kind})"
            )
        return [
            e
            for k, e in self._cluster.config_entries.items()
            if k.kind == kind and (not partition or k.partition == partition)
        ]

    def config_entry_set(self, entry: ModelConfigEntry) -> None:
        self._record(f"config_entry_set:{entry.kind}/{entry.name}")
        self._cluster.config_entries[entry.key] = entry

    def config_entry_delete(
        self, kind: str, name: str, namespace: str = "", partition: str = ""
    ) -> None:
        self._record(f"config_entry_delete:{kind}/{name}")
        for key in list(self._cluster.config_entries):
            if key.kind == kind and key.name == name:
                if namespace and key.namespace != namespace:
                    continue
                if partition and key.partition != partition:
                    continue
                del self._cluster.config_entries[key]

    # tenancy

    def partition_list(self) -> list[str]:
        self._record("partition_list")
        return sorted(self._cluster.partitions)

    def partition_create(self, name: str) -> None:
        self._record(f"partition_create:{name}")
        self._cluster.partitions.add(name)
        self._cluster.namespaces.setdefault(name, {DEFAULT_TENANT})

    def partition_delete(self, name: str) -> None:
        self._record(f"partition_delete:{name}")
        self._cluster.partitions.discard(name)
        self._cluster.namespaces.pop(name, None)

    def namespace_list(self, partition: str = "") -> list[str]:
        self._record("namespace_list")
        return sorted(self._cluster.namespaces.get(partition or DEFAULT_TENANT, set()))

    def namespace_create(
        self, name: str, partition: str = "", default_policies: list[str] | None = None
    ) -> None:
        self._record(f"namespace_create:{partition}/{name}")
        part = partition or DEFAULT_TENANT
        self._cluster.namespaces.setdefault(part, set()).add(name)
        self._cluster.namespace_defaults[(part, name)] = list(default_policies or [])

    def namespace_delete(self, name: str, partition: str = "") -> None:
        self._record(f"namespace_delete:{partition}/{name}")
        self._cluster.namespaces.get(partition or DEFAULT_TENANT, set()).discard(name)

    # peering

    def peering_read(self, name: str, partition: str = "") -> dict[str, Any] | None:
        self._record("peering_read")
        return self._cluster.peerings.get(name)

    def peering_generate_token(self, peer_name: str, partition: str = "") -> SecretStr:
        self._record("peering_generate_token")
        self._cluster.peerings[peer_name] = {"Name": peer_name, "State": "PENDING"}
        return SecretStr(f"peering-token-for-{peer_name}")

    def peering_establish(
        self, peer_name: str, peering_token: SecretStr, partition: str = ""
    ) -> None:
        self._record("peering_establish")
        self._cluster.peerings[peer_name] = {"Name": peer_name, "State": "ACTIVE"}

    # kv

    def kv_put(self, key: str, value: str, datacenter: str = "") -> bool:
        self._record(f"kv_put:{datacenter or self._cluster.name}")
        target = self._mesh.cluster(datacenter) if datacenter else self._cluster
        target.kv[key] = value
        return True


class FakeClientProvider:
    """ProtocolClientProvider returning FakeConsulClient instances."""

    def __init__(self, mesh: FakeMesh) -> None:
        self._mesh = mesh
        self.requested: list[tuple[str, str]] = []

    def get_client(self, address: str, token: SecretStr | None = None) -> FakeConsulClient:
        self.requested.append((address, token.get_secret_value() if token else ""))
        return FakeConsulClient(self._mesh, self._mesh.address_owner[address], token)


class RecordingCache(StoreCredentialCacheInMemory):
    """In-memory cache that also logs its mutations into the mesh event log."""

    def __init__(self, mesh: FakeMesh, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self._mesh = mesh

    def save(self, name: str, value: str) -> None:
        super().save(name, value)
        self._mesh.record("cache", f"save:{name}")

    def delete(self, name: str) -> None:
        super().delete(name)
        self._mesh.record("cache", f"delete:{name}")


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


# ---------------------------------------------------------------------- #
# Topology builders
# ---------------------------------------------------------------------- #


def make_node(
    cluster: str,
    name: str,
    kind: EnumNodeKind,
    index: int,
    service: ModelService | None = None,
    mesh_gateway: bool = False,
    partition: str = DEFAULT_TENANT,
) -> ModelNode:
    octet = int(cluster.removeprefix("dc")) if cluster.startswith("dc") else 9
    return ModelNode(
        cluster=cluster,
        name=name,
        kind=kind,
        partition=partition,
        addresses=[
            ModelAddress(network=cluster, ip_address=f"10.0.{octet}.{index}"),
            ModelAddress(network="wan", ip_address=f"10.1.{octet}.{index}"),
        ],
        service=service,
        mesh_gateway=mesh_gateway,
    )


def cluster_nodes(cluster: str) -> list[ModelNode]:
    """One server, one client running ``web`` (calls ``api``) and one running ``api``."""
    web = ModelService(
        id=ModelIdentifier(name="web"),
        port=8080,
        upstream_id=ModelIdentifier(name="api"),
        upstream_local_port=9090,
    )
    api = ModelService(id=ModelIdentifier(name="api"), port=8080)
    return [
        make_node(cluster, f"{cluster}-server1", EnumNodeKind.SERVER, 11),
        make_node(cluster, f"{cluster}-client1", EnumNodeKind.CLIENT, 21, service=web),
        make_node(cluster, f"{cluster}-client2", EnumNodeKind.CLIENT, 22, service=api),
        make_node(cluster, f"{cluster}-mgw", EnumNodeKind.CLIENT, 31, mesh_gateway=True),
    ]


def make_topology(link_mode: str = "federate", clusters: tuple[str, ...] = ("dc1", "dc2")) -> ModelTopology:
    nodes: list[ModelNode] = []
    for name in clusters:
        nodes.extend(cluster_nodes(name))
    return ModelTopology(
        link_mode=link_mode,
        clusters=[ModelCluster(name=name, primary=(i == 0)) for i, name in enumerate(clusters)],
        nodes=nodes,
    )


def make_config(**overrides: Any) -> ModelBootstrapConfig:
    values: dict[str, Any] = {"agent_master_token": SecretStr(AGENT_MASTER_TOKEN)}
    values.update(overrides)
    return ModelBootstrapConfig(**values)


# ---------------------------------------------------------------------- #
# Harness
# ---------------------------------------------------------------------- #


class BootstrapHarness:
    """A fake mesh with its cache, clock and provider, ready to bootstrap."""

    def __init__(
        self,
        topology: ModelTopology,
        enterprise: bool = False,
        initial_cache: dict[str, str] | None = None,
        init: bool = True,
    ) -> None:
        self.topology = topology
        self.mesh = FakeMesh(topology, enterprise=enterprise)
        self.cache = RecordingCache(self.mesh, initial_cache)
        if init:
            RunOnceMarker(self.cache).run_once(INIT_MARKER, lambda: None)
        self.clock = FakeClock()
        self.provider = FakeClientProvider(self.mesh)

    def orchestrator(self, config: ModelBootstrapConfig | None = None) -> BootstrapOrchestrator:
        return BootstrapOrchestrator(
            self.topology,
            config if config is not None else make_config(),
            self.cache,
            self.provider,
            sleep=self.clock.sleep,
            clock=self.clock,
        )

    def run(self, config: ModelBootstrapConfig | None = None, **kwargs: Any) -> BootstrapOrchestrator:
        orchestrator = self.orchestrator(config)
        orchestrator.run_bootstrap(**kwargs)
        return orchestrator

    def index(self, cluster: str, operation: str) -> int:
        """Position of the first matching event; -1 when absent."""
        try:
            return self.mesh.events.index((cluster, operation))
        except ValueError:
            return -1

    def reset_events(self) -> None:
        self.mesh.events.clear()


# ---------------------------------------------------------------------- #
# Fixtures
# ---------------------------------------------------------------------- #


@pytest.fixture
def agent_master_token() -> str:
    return AGENT_MASTER_TOKEN


@pytest.fixture
def topology_factory():
    """Build a topology: ``topology_factory("peer", ("dc1", "dc2", "dc3"))``."""
    return make_topology


@pytest.fixture
def config_factory():
    """Build a bootstrap config carrying the agent master token."""
    return make_config


@pytest.fixture
def harness_factory():
    def build(
        link_mode: str = "federate",
        clusters: tuple[str, ...] = ("dc1", "dc2"),
        enterprise: bool = False,
        initial_cache: dict[str, str] | None = None,
        init: bool = True,
        topology: ModelTopology | None = None,
    ) -> BootstrapHarness:
        return BootstrapHarness(
            topology or make_topology(link_mode, clusters),
            enterprise=enterprise,
            initial_cache=initial_cache,
            init=init,
        )

    return build


@pytest.fixture
def federation(harness_factory) -> BootstrapHarness:
    """Two-cluster WAN federation, dc1 primary."""
    return harness_factory("federate")


@pytest.fixture
def peering(harness_factory) -> BootstrapHarness:
    """Two peered clusters, dc1 the peering hub."""
    return harness_factory("peer")
