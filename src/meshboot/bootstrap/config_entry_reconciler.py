# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Central configuration reconciler.

Makes the config entries stored in a cluster match the desired set exactly:
stock entries synthesised from the topology merged with user-defined entries
from configuration.

Stock Entries:
    - ``proxy-defaults/global`` exposing the Envoy Prometheus listener, when
      Prometheus is enabled and the cluster is the primary
    - one ``service-intentions`` entry per upstream, allowing every
      downstream that declares it, unless default intentions are disabled

Merge Rules (by kind and name):
    - proxy-defaults: ``Config`` maps merged key by key, user values win
    - service-intentions: the user entry replaces the stock entry wholesale
    - any other kind colliding with a stock entry is a configuration error

Deletion:
    Observed entries with no desired counterpart are deleted one kind at a
    time in CONFIG_ENTRY_DELETION_ORDER, names sorted within a kind, so that
    entries referencing others are removed before the entries they reference.
"""

from __future__ import annotations

import logging
from typing import Any

from meshboot.bootstrap.bootstrap_context import BootstrapContext
from meshboot.bootstrap.predicates import is_invalid_config_entry_kind
from meshboot.bootstrap.util_phase_error_context import bootstrap_phase_error_context
from meshboot.bootstrap.util_tenancy import partition_query_list
from meshboot.enums import (
    CONFIG_ENTRY_DELETION_ORDER,
    PROXY_DEFAULTS_GLOBAL_NAME,
    EnumConfigEntryKind,
    EnumInfraTransportType,
)
from meshboot.errors import (
    InfraConsulError,
    ModelInfraErrorContext,
    ProtocolConfigurationError,
)
from meshboot.handlers import ConsulClient
from meshboot.models import ModelConfigEntry, ModelConfigEntryKey, ModelIdentifier

logger = logging.getLogger(__name__)

PROMETHEUS_BIND_ADDRESS: str = "0.0.0.0:9102"


class ConfigEntryReconciler:
    """Writes the desired config entries and deletes everything else."""

    def __init__(self, ctx: BootstrapContext) -> None:
        self._ctx = ctx

    def reconcile(self, cluster: str, client: ConsulClient) -> None:
        with bootstrap_phase_error_context(
            "write_central_configs", cluster=cluster, correlation_id=self._ctx.correlation_id
        ):
            observed = self.list_all_config_entries(client)
            desired = self.desired_entries(cluster)

            for entry in desired:
                if not self._ctx.enterprise:
                    entry = entry.scrubbed()
                client.config_entry_set(entry)
                observed.pop(entry.key, None)
                logger.info(
                    "Config entry written",
                    extra=self._ctx.log_extra(cluster=cluster, **self._key_fields(entry.key)),
                )

            for kind in CONFIG_ENTRY_DELETION_ORDER:
                doomed = sorted(
                    (key for key in observed if key.kind == kind.value),
                    key=lambda k: (k.name, k.namespace, k.partition),
                )
                for key in doomed:
                    logger.info(
                        "Deleting config entry",
                        extra=self._ctx.log_extra(cluster=cluster, **self._key_fields(key)),
                    )
                    if self._ctx.enterprise:
                        client.config_entry_delete(
                            key.kind, key.name, namespace=key.namespace, partition=key.partition
                        )
                    else:
                        client.config_entry_delete(key.kind, key.name)
                    del observed[key]

    def list_all_config_entries(
        self, client: ConsulClient
    ) -> dict[ModelConfigEntryKey, ModelConfigEntry]:
        """Every entry of every managed kind, skipping kinds the server lacks."""
        partitions = partition_query_list(
            client, self._ctx.enterprise, self._ctx.config.enterprise_disable_partitions
        )
        observed: dict[ModelConfigEntryKey, ModelConfigEntry] = {}
        for kind in CONFIG_ENTRY_DELETION_ORDER:
            for partition in partitions:
                try:
                    entries = client.config_entries_list(kind.value, partition=partition)
                except InfraConsulError as e:
                    if is_invalid_config_entry_kind(e):
                        break
                    raise
                for entry in entries:
                    observed[entry.key] = entry
        return observed

    def desired_entries(self, cluster: str) -> list[ModelConfigEntry]:
        """User entries for ``cluster`` merged with the stock entries."""
        entries = self._ctx.config.entries_for(cluster)
        for stock in self.stock_entries(cluster):
            for index, entry in enumerate(entries):
                if entry.kind != stock.kind or entry.name != stock.name:
                    continue
                if stock.kind == EnumConfigEntryKind.PROXY_DEFAULTS.value:
                    entries[index] = self._merge_proxy_defaults(stock, entry)
                elif stock.kind != EnumConfigEntryKind.SERVICE_INTENTIONS.value:
                    raise ProtocolConfigurationError(
                        f"unsupported kind: {stock.kind!r}",
                        context=ModelInfraErrorContext(
                            transport_type=EnumInfraTransportType.RUNTIME,
                            operation="merge_config_entries",
                            target_name=cluster,
                            correlation_id=self._ctx.correlation_id,
                        ),
                    )
                break
            else:
                entries.append(stock)
        return entries

    def stock_entries(self, cluster: str) -> list[ModelConfigEntry]:
        stock: list[ModelConfigEntry] = []
        config = self._ctx.config
        if config.prometheus_enabled and self._ctx.topology.cluster(cluster).primary:
            stock.append(
                ModelConfigEntry(
                    kind=EnumConfigEntryKind.PROXY_DEFAULTS.value,
                    name=PROXY_DEFAULTS_GLOBAL_NAME,
                    partition="default",
                    body={"Config": {"envoy_prometheus_bind_addr": PROMETHEUS_BIND_ADDRESS}},
                )
            )
        if not config.security_disable_default_intentions:
            stock.extend(self._default_intentions())
        return stock

    def _default_intentions(self) -> list[ModelConfigEntry]:
        downstreams: dict[str, tuple[ModelIdentifier, dict[str, ModelIdentifier]]] = {}
        for node in self._ctx.topology.walk():
            service = node.service
            if service is None or service.upstream_id is None:
                continue
            dst = service.upstream_id
            _, sources = downstreams.setdefault(dst.id, (dst, {}))
            sources[service.id.id] = service.id

        entries: list[ModelConfigEntry] = []
        for dst_key in sorted(downstreams):
            dst, sources = downstreams[dst_key]
            entries.append(
                ModelConfigEntry(
                    kind=EnumConfigEntryKind.SERVICE_INTENTIONS.value,
                    name=dst.name,
                    namespace=dst.namespace,
                    partition=dst.partition,
                    body={
                        "Sources": [
                            {
                                "Name": src.name,
                                "Namespace": src.namespace,
                                "Partition": src.partition,
                                "Action": "allow",
                            }
                            for _, src in sorted(sources.items())
                        ]
                    },
                )
            )
        return entries

    @staticmethod
    def _merge_proxy_defaults(
        stock: ModelConfigEntry, user: ModelConfigEntry
    ) -> ModelConfigEntry:
        merged: dict[str, Any] = dict(stock.body.get("Config") or {})
        merged.update(user.body.get("Config") or {})
        return user.model_copy(update={"body": {**user.body, "Config": merged}})

    @staticmethod
    def _key_fields(key: ModelConfigEntryKey) -> dict[str, str]:
        return {
            "config_kind": key.kind,
            "config_name": key.name,
            "namespace": key.namespace,
            "partition": key.partition,
        }


__all__: list[str] = ["PROMETHEUS_BIND_ADDRESS", "ConfigEntryReconciler"]
