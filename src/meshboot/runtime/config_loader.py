# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""YAML loaders for the bootstrap configuration and the compiled topology.

Security:
    - Uses yaml.safe_load() to prevent arbitrary code execution
    - Validation errors name the failing fields only; input values (which
      may include pre-seeded tokens) are never echoed back
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from meshboot.enums import EnumInfraTransportType
from meshboot.errors import ModelInfraErrorContext, ProtocolConfigurationError
from meshboot.models import ModelBootstrapConfig, ModelTopology

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SIZE_BYTES: int = 10 * 1024 * 1024

ModelT = TypeVar("ModelT", bound=BaseModel)


def _context(operation: str, path: Path) -> ModelInfraErrorContext:
    return ModelInfraErrorContext(
        transport_type=EnumInfraTransportType.FILESYSTEM,
        operation=operation,
        target_name=str(path),
    )


def _read_document(path: Path, operation: str, missing_ok: bool) -> dict[str, object]:
    if not path.exists():
        if missing_ok:
            logger.info("Document not found; using defaults", extra={"path": str(path)})
            return {}
        raise ProtocolConfigurationError(
            f"File not found: {path}", context=_context(operation, path)
        )

    file_size = path.stat().st_size
    if file_size > MAX_DOCUMENT_SIZE_BYTES:
        raise ProtocolConfigurationError(
            f"File too large: {file_size} bytes (max {MAX_DOCUMENT_SIZE_BYTES})",
            context=_context(operation, path),
        )

    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProtocolConfigurationError(
            f"Invalid YAML in {path}: {e}", context=_context(operation, path)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ProtocolConfigurationError(
            f"{path} must contain a mapping, got {type(data).__name__}",
            context=_context(operation, path),
        )
    return data


def _validate(model: type[ModelT], data: dict[str, object], path: Path, operation: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        fields = sorted(
            {".".join(str(part) for part in err["loc"]) or "<root>" for err in e.errors()}
        )
        raise ProtocolConfigurationError(
            f"Invalid {model.__name__} in {path}: {e.error_count()} error(s) "
            f"in field(s): {', '.join(fields)}",
            context=_context(operation, path),
        ) from e


def load_bootstrap_config(path: str | Path) -> ModelBootstrapConfig:
    """Load the bootstrap configuration; a missing file means all defaults."""
    path = Path(path)
    data = _read_document(path, "load_bootstrap_config", missing_ok=True)
    config = _validate(ModelBootstrapConfig, data, path, "load_bootstrap_config")
    logger.debug(
        "Loaded bootstrap config",
        extra={
            "path": str(path),
            "acls_enabled": config.acls_enabled,
            "enterprise_enabled": config.enterprise_enabled,
        },
    )
    return config


def load_topology(path: str | Path) -> ModelTopology:
    """Load a compiled topology document."""
    path = Path(path)
    data = _read_document(path, "load_topology", missing_ok=False)
    topology = _validate(ModelTopology, data, path, "load_topology")
    logger.debug(
        "Loaded topology",
        extra={
            "path": str(path),
            "link_mode": topology.link_mode.value,
            "cluster_count": len(topology.clusters),
            "node_count": len(topology.nodes),
        },
    )
    return topology


__all__: list[str] = ["MAX_DOCUMENT_SIZE_BYTES", "load_bootstrap_config", "load_topology"]
