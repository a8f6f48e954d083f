# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for topology, identity and config entry models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from meshboot.enums import EnumCheckStatus, EnumClusterLinkMode, EnumCredentialKind, EnumNodeKind
from meshboot.errors import CredentialRegistryError, ProtocolConfigurationError
from meshboot.models import (
    ModelAddress,
    ModelBootstrapConfig,
    ModelCluster,
    ModelConfigEntry,
    ModelHealthInstance,
    ModelIdentifier,
    ModelIssueResult,
    ModelNode,
    ModelService,
    ModelTopology,
)


def node(
    name: str,
    kind: EnumNodeKind = EnumNodeKind.CLIENT,
    cluster: str = "dc1",
    mesh_gateway: bool = False,
    octet: int = 1,
) -> ModelNode:
    return ModelNode(
        cluster=cluster,
        name=name,
        kind=kind,
        addresses=[
            ModelAddress(network=cluster, ip_address=f"10.0.1.{octet}"),
            ModelAddress(network="wan", ip_address=f"10.1.1.{octet}"),
        ],
        mesh_gateway=mesh_gateway,
    )


def topology(*nodes: ModelNode, **kwargs: object) -> ModelTopology:
    return ModelTopology(
        clusters=[ModelCluster(name="dc1", primary=True), ModelCluster(name="dc2")],
        nodes=list(nodes),
        **kwargs,
    )


class TestModelTopology:
    """Test inventory validation and lookups."""

    def test_exactly_one_primary_required(self) -> None:
        with pytest.raises(ValidationError, match="exactly one primary"):
            ModelTopology(clusters=[ModelCluster(name="dc1"), ModelCluster(name="dc2")])

        with pytest.raises(ValidationError, match="exactly one primary"):
            ModelTopology(
                clusters=[
                    ModelCluster(name="dc1", primary=True),
                    ModelCluster(name="dc2", primary=True),
                ]
            )

    def test_node_must_reference_known_cluster(self) -> None:
        with pytest.raises(ValidationError, match="unknown cluster dc9"):
            topology(node("dc9-server1", cluster="dc9"))

    def test_duplicate_node_names_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicate node name"):
            topology(node("dc1-client1"), node("dc1-client1", octet=2))

    def test_walk_orders_servers_before_clients(self) -> None:
        topo = topology(
            node("dc1-client2", octet=22),
            node("dc1-server2", EnumNodeKind.SERVER, octet=12),
            node("dc1-client1", octet=21),
            node("dc1-server1", EnumNodeKind.SERVER, octet=11),
            node("prometheus", EnumNodeKind.INFRA, octet=5),
        )

        assert [n.name for n in topo.walk()] == [
            "prometheus",
            "dc1-server1",
            "dc1-server2",
            "dc1-client1",
            "dc1-client2",
        ]

    def test_leader_address_is_first_server(self) -> None:
        topo = topology(
            node("dc1-server2", EnumNodeKind.SERVER, octet=12),
            node("dc1-server1", EnumNodeKind.SERVER, octet=11),
        )

        assert topo.leader_address("dc1") == "10.0.1.11"
        assert topo.leader_address("dc1", wan=True) == "10.1.1.11"
        assert topo.server_addresses("dc1") == ["10.0.1.11", "10.0.1.12"]

    def test_cluster_without_servers_has_no_leader(self) -> None:
        with pytest.raises(ProtocolConfigurationError, match="dc2 has no servers"):
            topology().leader_address("dc2")

    def test_gateway_addresses_include_additional_on_primary(self) -> None:
        topo = topology(
            node("dc1-mgw", mesh_gateway=True, octet=31),
            additional_primary_gateways=["203.0.113.10:8443"],
        )

        assert topo.gateway_addresses("dc1") == ["10.1.1.31:8443", "203.0.113.10:8443"]
        assert topo.gateway_addresses("dc2") == []

    def test_link_mode_flags(self) -> None:
        peered = topology(link_mode="peer")

        assert peered.link_mode == EnumClusterLinkMode.PEER
        assert peered.link_with_peering and not peered.link_with_federation
        assert topology().link_with_federation

    def test_unknown_cluster_lookup(self) -> None:
        with pytest.raises(ProtocolConfigurationError, match="no such cluster"):
            topology().cluster("dc7")


class TestModelNode:
    def test_derived_names(self) -> None:
        n = node("dc1-client1")

        assert n.pod_name == "dc1-client1-pod"
        assert n.token_name == "agent--dc1-client1"
        assert n.is_agent and not n.is_server

    def test_lan_network_counts_as_local(self) -> None:
        n = ModelNode(
            cluster="dc1",
            name="dc1-server1",
            kind=EnumNodeKind.SERVER,
            addresses=[ModelAddress(network="lan", ip_address="192.168.0.5")],
        )

        assert n.local_address == "192.168.0.5"
        with pytest.raises(ProtocolConfigurationError, match="no public address"):
            _ = n.public_address

    def test_dataplane_is_not_an_agent(self) -> None:
        assert not node("dc1-dataplane1", EnumNodeKind.DATAPLANE).is_agent


class TestModelIdentifier:
    def test_empty_tenancy_normalises_to_default(self) -> None:
        sid = ModelIdentifier(name="web", namespace="", partition=None)

        assert sid == ModelIdentifier(name="web")
        assert sid.id == "default.default.web"
        assert str(sid) == "default/default/web"

    def test_service_upstream_locality_is_exclusive(self) -> None:
        with pytest.raises(ValidationError, match="mutually exclusive"):
            ModelService(
                id=ModelIdentifier(name="web"),
                upstream_id=ModelIdentifier(name="api"),
                upstream_peer="peer-dc2",
                upstream_datacenter="dc2",
            )


class TestModelConfigEntry:
    """Test the API document round trip and scrubbing."""

    def test_api_document_splits_identity_from_body(self) -> None:
        entry = ModelConfigEntry.model_validate(
            {
                "Kind": "service-resolver",
                "Name": "api",
                "Namespace": None,
                "ConnectTimeout": "5s",
            }
        )

        assert (entry.kind, entry.name, entry.namespace) == ("service-resolver", "api", "")
        assert entry.body == {"ConnectTimeout": "5s"}
        assert entry.key.namespace == "default"
        assert entry.to_api() == {"Kind": "service-resolver", "Name": "api", "ConnectTimeout": "5s"}

    def test_scrubbed_drops_tenancy_from_intention_sources(self) -> None:
        entry = ModelConfigEntry(
            kind="service-intentions",
            name="api",
            namespace="default",
            partition="default",
            body={"Sources": [{"Name": "web", "Namespace": "default", "Partition": "default"}]},
        )

        scrubbed = entry.scrubbed()

        assert (scrubbed.namespace, scrubbed.partition) == ("", "")
        assert scrubbed.body == {"Sources": [{"Name": "web"}]}
        assert entry.body["Sources"][0]["Namespace"] == "default"
        assert scrubbed.key == entry.key


class TestModelHealthInstance:
    @pytest.mark.parametrize(
        ("statuses", "expected"),
        [
            ([], EnumCheckStatus.PASSING),
            (["passing", "warning"], EnumCheckStatus.WARNING),
            (["critical", "warning"], EnumCheckStatus.CRITICAL),
            (["maintenance", "critical"], EnumCheckStatus.MAINTENANCE),
            (["bogus"], EnumCheckStatus.PASSING),
        ],
    )
    def test_overall_status_is_worst_check(
        self, statuses: list[str], expected: EnumCheckStatus
    ) -> None:
        instance = ModelHealthInstance.from_api(
            {"Node": {"Node": "n1"}, "Checks": [{"Status": s} for s in statuses]}
        )

        assert instance.overall_status == expected
        assert instance.node_id == "default/n1"


class TestModelBootstrapConfig:
    def test_unknown_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModelBootstrapConfig.model_validate({"security_disable_acl": True})

    def test_secrets_hidden_in_dump(self) -> None:
        config = ModelBootstrapConfig(initial_master_token="seed-token")

        assert "seed-token" not in repr(config)
        assert "seed-token" not in str(config.model_dump())
        assert config.secret_value("initial_master_token") == "seed-token"
        assert config.secret_value("gossip_key") == ""

    def test_entries_for_returns_copy(self) -> None:
        entry = ModelConfigEntry(kind="service-defaults", name="web")
        config = ModelBootstrapConfig(config_entries={"dc1": [entry]})

        entries = config.entries_for("dc1")
        entries.append(entry)

        assert len(config.entries_for("dc1")) == 1
        assert config.entries_for("dc2") == []


class TestModelIssueResult:
    def test_commit_runs_exactly_once(self) -> None:
        calls: list[str] = []
        result = ModelIssueResult(
            kind=EnumCredentialKind.MESH_GATEWAY,
            target_cluster="dc2",
            secrets={"dc2": "gw"},
            commit=lambda: calls.append("commit"),
        )

        result.run_commit()

        assert result.committed
        assert calls == ["commit"]
        with pytest.raises(CredentialRegistryError, match="invoked twice"):
            result.run_commit()

    def test_secrets_not_in_repr(self) -> None:
        result = ModelIssueResult(
            kind=EnumCredentialKind.AGENT, target_cluster="dc2", secrets={"n": "agent-secret"}
        )

        assert "agent-secret" not in repr(result)
