# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for ConfigEntryReconciler against the fake control plane."""

from __future__ import annotations

import pytest

from meshboot.bootstrap.config_entry_reconciler import (
    PROMETHEUS_BIND_ADDRESS,
    ConfigEntryReconciler,
)
from meshboot.models import ModelConfigEntry


def seed(harness, cluster: str, *entries: ModelConfigEntry) -> None:
    store = harness.mesh.cluster(cluster).config_entries
    for entry in entries:
        store[entry.key] = entry


def reconcile(harness, config, cluster: str = "dc1") -> None:
    ctx = harness.orchestrator(config).context
    ConfigEntryReconciler(ctx).reconcile(cluster, ctx.client_for_cluster(cluster))


def stored(harness, cluster: str, kind: str, name: str) -> ModelConfigEntry:
    for key, entry in harness.mesh.cluster(cluster).config_entries.items():
        if key.kind == kind and key.name == name:
            return entry
    raise AssertionError(f"{kind}/{name} not stored in {cluster}")


class TestDeletion:
    """Entries without a desired counterpart are deleted in dependency order."""

    def test_deletes_referencing_kinds_first(self, federation, config_factory) -> None:
        seed(
            federation,
            "dc1",
            ModelConfigEntry(kind="service-defaults", name="web"),
            ModelConfigEntry(kind="service-defaults", name="api"),
            ModelConfigEntry(kind="proxy-defaults", name="global"),
            ModelConfigEntry(kind="service-resolver", name="web"),
            ModelConfigEntry(kind="service-router", name="web"),
            ModelConfigEntry(kind="mesh", name="mesh"),
        )

        reconcile(federation, config_factory(security_disable_default_intentions=True))

        deletes = [op for _, op in federation.mesh.events if op.startswith("config_entry_delete")]
        assert deletes == [
            "config_entry_delete:mesh/mesh",
            "config_entry_delete:service-router/web",
            "config_entry_delete:service-resolver/web",
            "config_entry_delete:service-defaults/api",
            "config_entry_delete:service-defaults/web",
            "config_entry_delete:proxy-defaults/global",
        ]
        assert federation.mesh.cluster("dc1").config_entries == {}

    def test_desired_entries_are_not_deleted(self, federation, config_factory) -> None:
        desired = ModelConfigEntry.model_validate(
            {"Kind": "service-defaults", "Name": "web", "Protocol": "http"}
        )
        seed(federation, "dc1", ModelConfigEntry(kind="service-defaults", name="web"))

        reconcile(
            federation,
            config_factory(
                security_disable_default_intentions=True, config_entries={"dc1": [desired]}
            ),
        )

        assert federation.mesh.count("config_entry_delete:service-defaults/web") == 0
        assert stored(federation, "dc1", "service-defaults", "web").body == {"Protocol": "http"}

    def test_unknown_kind_is_skipped(self, federation, config_factory) -> None:
        federation.mesh.cluster("dc1").unknown_kinds.add("mesh")
        seed(federation, "dc1", ModelConfigEntry(kind="service-router", name="web"))

        reconcile(federation, config_factory(security_disable_default_intentions=True))

        assert federation.mesh.count("config_entries_list:service-defaults") == 1
        assert federation.mesh.count("config_entry_delete:service-router/web") == 1


class TestStockEntries:
    """Synthesised intentions and proxy defaults."""

    def test_one_intention_per_upstream(self, federation, config_factory) -> None:
        reconcile(federation, config_factory())

        entry = stored(federation, "dc1", "service-intentions", "api")
        assert entry.body == {"Sources": [{"Name": "web", "Action": "allow"}]}
        assert entry.namespace == "" and entry.partition == ""

    def test_enterprise_entries_keep_tenancy(self, federation, config_factory) -> None:
        reconcile(federation, config_factory(enterprise_enabled=True))

        entry = stored(federation, "dc1", "service-intentions", "api")
        assert (entry.namespace, entry.partition) == ("default", "default")
        assert entry.body["Sources"] == [
            {"Name": "web", "Namespace": "default", "Partition": "default", "Action": "allow"}
        ]

    def test_default_intentions_can_be_disabled(self, federation, config_factory) -> None:
        reconcile(federation, config_factory(security_disable_default_intentions=True))

        assert federation.mesh.cluster("dc1").config_entries == {}

    def test_prometheus_proxy_defaults_on_primary_only(self, federation, config_factory) -> None:
        reconciler = ConfigEntryReconciler(
            federation.orchestrator(config_factory(prometheus_enabled=True)).context
        )

        primary = {(e.kind, e.name) for e in reconciler.desired_entries("dc1")}
        secondary = {(e.kind, e.name) for e in reconciler.desired_entries("dc2")}

        assert ("proxy-defaults", "global") in primary
        assert ("proxy-defaults", "global") not in secondary


class TestMergeRules:
    """User entries colliding with stock entries."""

    def test_proxy_defaults_config_merged_user_wins(self, federation, config_factory) -> None:
        user = ModelConfigEntry.model_validate(
            {
                "Kind": "proxy-defaults",
                "Name": "global",
                "Config": {
                    "envoy_prometheus_bind_addr": "0.0.0.0:9999",
                    "protocol": "http",
                },
                "MeshGateway": {"Mode": "local"},
            }
        )
        config = config_factory(prometheus_enabled=True, config_entries={"dc1": [user]})

        reconcile(federation, config)

        entry = stored(federation, "dc1", "proxy-defaults", "global")
        assert entry.body["Config"] == {
            "envoy_prometheus_bind_addr": "0.0.0.0:9999",
            "protocol": "http",
        }
        assert entry.body["MeshGateway"] == {"Mode": "local"}

    def test_stock_config_kept_when_user_omits_key(self, federation, config_factory) -> None:
        user = ModelConfigEntry.model_validate(
            {"Kind": "proxy-defaults", "Name": "global", "Config": {"protocol": "grpc"}}
        )

        reconcile(
            federation,
            config_factory(prometheus_enabled=True, config_entries={"dc1": [user]}),
        )

        config = stored(federation, "dc1", "proxy-defaults", "global").body["Config"]
        assert config == {"envoy_prometheus_bind_addr": PROMETHEUS_BIND_ADDRESS, "protocol": "grpc"}

    def test_user_intentions_replace_stock(self, federation, config_factory) -> None:
        user = ModelConfigEntry.model_validate(
            {
                "Kind": "service-intentions",
                "Name": "api",
                "Sources": [{"Name": "*", "Action": "deny"}],
            }
        )

        reconcile(federation, config_factory(config_entries={"dc1": [user]}))

        entry = stored(federation, "dc1", "service-intentions", "api")
        assert entry.body == {"Sources": [{"Name": "*", "Action": "deny"}]}
        assert federation.mesh.count("config_entry_set:service-intentions/api") == 1

    @pytest.mark.parametrize("cluster", ["dc1", "dc2"])
    def test_entries_apply_to_their_cluster_only(
        self, federation, config_factory, cluster: str
    ) -> None:
        user = ModelConfigEntry(kind="service-defaults", name="web", body={"Protocol": "http"})
        config = config_factory(
            security_disable_default_intentions=True, config_entries={"dc2": [user]}
        )

        reconcile(federation, config, cluster=cluster)

        written = federation.mesh.count("config_entry_set:service-defaults/web")
        assert written == (1 if cluster == "dc2" else 0)
