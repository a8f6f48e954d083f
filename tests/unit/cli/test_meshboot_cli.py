# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Unit tests for the meshboot CLI commands.

Only paths that fail or finish before any control plane call are exercised
here; full bootstrap runs are covered by the orchestrator tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from meshboot.cli.commands import cli

TOPOLOGY_YAML = """
link_mode: {link_mode}
clusters:
  - name: dc1
    primary: true
  - name: dc2
nodes:
  - cluster: dc1
    name: dc1-server1
    kind: server
    addresses:
      - network: dc1
        ip_address: 10.0.1.11
  - cluster: dc2
    name: dc2-server1
    kind: server
    addresses:
      - network: dc2
        ip_address: 10.0.2.11
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    (tmp_path / "topology.yaml").write_text(TOPOLOGY_YAML.format(link_mode="federate"))
    return tmp_path


def invoke(runner: CliRunner, workdir: Path, *args: str):
    return runner.invoke(
        cli,
        [
            "--config",
            str(workdir / "meshboot.yaml"),
            "--topology",
            str(workdir / "topology.yaml"),
            "--cache-dir",
            str(workdir / "cache"),
            *args,
        ],
    )


class TestInitCommand:
    """Test the one-time init command."""

    def test_init_creates_cache(self, runner: CliRunner, workdir: Path) -> None:
        """Test init generates the agent master token and the marker."""
        result = invoke(runner, workdir, "init")

        assert result.exit_code == 0
        assert "Initialised cache" in result.output
        assert (workdir / "cache" / "agent-master-token.val").is_file()
        assert (workdir / "cache" / "init.done").read_text() == "init"

    def test_second_init_is_a_no_op(self, runner: CliRunner, workdir: Path) -> None:
        invoke(runner, workdir, "init")
        token = (workdir / "cache" / "agent-master-token.val").read_text()

        result = invoke(runner, workdir, "init")

        assert result.exit_code == 0
        assert "already initialised" in result.output
        assert (workdir / "cache" / "agent-master-token.val").read_text() == token

    def test_init_with_gossip_encryption(self, runner: CliRunner, workdir: Path) -> None:
        (workdir / "meshboot.yaml").write_text("encryption_gossip: true\n")

        result = invoke(runner, workdir, "init")

        assert result.exit_code == 0
        assert (workdir / "cache" / "gossip-key.val").is_file()

    def test_init_rejects_bad_config(self, runner: CliRunner, workdir: Path) -> None:
        (workdir / "meshboot.yaml").write_text("no_such_option: true\n")

        result = invoke(runner, workdir, "init")

        assert result.exit_code == 1
        assert "init failed" in result.output


class TestSecretsCommand:
    """Test the masked cache view."""

    def test_empty_cache(self, runner: CliRunner, workdir: Path) -> None:
        result = invoke(runner, workdir, "secrets")

        assert result.exit_code == 0
        assert "No cached secrets" in result.output

    def test_values_are_masked(self, runner: CliRunner, workdir: Path) -> None:
        invoke(runner, workdir, "init")
        token = (workdir / "cache" / "agent-master-token.val").read_text()

        result = invoke(runner, workdir, "secrets")

        assert result.exit_code == 0
        assert "agent-master-token" in result.output
        assert f"{token[:4]}****" in result.output
        assert token not in result.output


class TestBootCommand:
    """Test boot failures that happen before any control plane call."""

    def test_boot_requires_init(self, runner: CliRunner, workdir: Path) -> None:
        result = invoke(runner, workdir, "boot")

        assert result.exit_code == 1
        assert "boot failed" in result.output
        assert "has not yet been run" in result.output

    def test_boot_requires_topology(self, runner: CliRunner, workdir: Path) -> None:
        (workdir / "topology.yaml").unlink()

        result = invoke(runner, workdir, "boot")

        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_primary_only_rejected_for_peering(self, runner: CliRunner, workdir: Path) -> None:
        (workdir / "topology.yaml").write_text(TOPOLOGY_YAML.format(link_mode="peer"))
        invoke(runner, workdir, "init")

        result = invoke(runner, workdir, "boot", "--primary-only")

        assert result.exit_code == 1
        assert "primary boot mode" in result.output

    def test_deadline_must_be_positive(self, runner: CliRunner, workdir: Path) -> None:
        result = invoke(runner, workdir, "boot", "--deadline-seconds", "0")

        assert result.exit_code == 2
