# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Central config entry models.

Config entries are kept in the control plane's own JSON shape (PascalCase
keys) so that user-supplied entries pass through untouched. Only the identity
fields are lifted out into typed attributes; everything else lives in
``body``.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from meshboot.enums import EnumConfigEntryKind
from meshboot.models.model_identifier import (
    namespace_or_default,
    partition_or_default,
)

_IDENTITY_FIELDS: dict[str, str] = {
    "Kind": "kind",
    "Name": "name",
    "Namespace": "namespace",
    "Partition": "partition",
}


class ModelConfigEntryKey(BaseModel):
    """Identity of a config entry: (kind, name, namespace, partition)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str
    name: str
    namespace: str
    partition: str


class ModelConfigEntry(BaseModel):
    """One central config entry.

    Accepts either snake_case fields or the API's PascalCase document::

        >>> ModelConfigEntry.model_validate(
        ...     {"Kind": "service-defaults", "Name": "web", "Protocol": "http"}
        ... ).body
        {'Protocol': 'http'}
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    namespace: str = ""
    partition: str = ""
    body: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_api_document(cls, data: object) -> object:
        if not isinstance(data, dict) or "Kind" not in data:
            return data
        fields: dict[str, Any] = {"body": {}}
        for key, value in data.items():
            if key in _IDENTITY_FIELDS:
                fields[_IDENTITY_FIELDS[key]] = value or ""
            else:
                fields["body"][key] = value
        return fields

    @property
    def key(self) -> ModelConfigEntryKey:
        return ModelConfigEntryKey(
            kind=self.kind,
            name=self.name,
            namespace=namespace_or_default(self.namespace),
            partition=partition_or_default(self.partition),
        )

    def to_api(self) -> dict[str, Any]:
        document: dict[str, Any] = {"Kind": self.kind, "Name": self.name}
        if self.namespace:
            document["Namespace"] = self.namespace
        if self.partition:
            document["Partition"] = self.partition
        document.update(copy.deepcopy(self.body))
        return document

    def scrubbed(self) -> ModelConfigEntry:
        """Copy without namespace/partition, for non-enterprise servers."""
        body = copy.deepcopy(self.body)
        if self.kind == EnumConfigEntryKind.SERVICE_INTENTIONS.value:
            for source in body.get("Sources") or []:
                if isinstance(source, dict):
                    source.pop("Namespace", None)
                    source.pop("Partition", None)
        return self.model_copy(update={"namespace": "", "partition": "", "body": body})


__all__ = ["ModelConfigEntry", "ModelConfigEntryKey"]
