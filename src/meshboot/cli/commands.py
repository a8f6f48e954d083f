# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""
meshboot CLI Commands.

Provides the operator entry points: one-time initialisation, the bootstrap
run itself, and an inspection view of the credential cache.
"""

from __future__ import annotations

import time

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from meshboot.bootstrap import INIT_MARKER, BootstrapOrchestrator, LocalSecrets, RunOnceMarker
from meshboot.errors import RuntimeHostError
from meshboot.handlers import ConsulClientProvider
from meshboot.runtime import configure_logging, load_bootstrap_config, load_topology
from meshboot.stores import StoreCredentialCacheFilesystem
from meshboot.utils import mask_secret

console = Console()


@click.group()
@click.option(
    "--config",
    "config_path",
    default="meshboot.yaml",
    show_default=True,
    help="Bootstrap configuration file",
)
@click.option(
    "--topology",
    "topology_path",
    default="topology.yaml",
    show_default=True,
    help="Compiled topology document",
)
@click.option(
    "--cache-dir",
    default="cache",
    show_default=True,
    help="Directory holding cached secrets",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str, topology_path: str, cache_dir: str) -> None:
    """Bootstrap a multi-cluster service mesh control plane."""
    configure_logging()
    ctx.obj = {
        "config_path": config_path,
        "topology_path": topology_path,
        "cache_dir": cache_dir,
    }


@cli.command("init")
@click.pass_context
def init_cmd(ctx: click.Context) -> None:
    """Generate local secrets and record that init has run."""
    try:
        config = load_bootstrap_config(ctx.obj["config_path"])
        cache = StoreCredentialCacheFilesystem(ctx.obj["cache_dir"])
        LocalSecrets(cache).prepare(config)
        ran = RunOnceMarker(cache).run_once(INIT_MARKER, lambda: None)
    except RuntimeHostError as e:
        console.print(f"[bold red]init failed:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    if ran:
        console.print(f"[bold green]Initialised cache in {cache.directory}[/bold green]")
    else:
        console.print(f"[yellow]Cache in {cache.directory} already initialised[/yellow]")


@cli.command("boot")
@click.option(
    "--primary-only",
    is_flag=True,
    default=False,
    help="Only bootstrap the primary cluster (federation only)",
)
@click.option(
    "--deadline-seconds",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up on the final health check after this many seconds",
)
@click.pass_context
def boot_cmd(ctx: click.Context, primary_only: bool, deadline_seconds: float | None) -> None:
    """Run the bootstrap sequence against the topology."""
    try:
        config = load_bootstrap_config(ctx.obj["config_path"])
        topology = load_topology(ctx.obj["topology_path"])
        cache = StoreCredentialCacheFilesystem(ctx.obj["cache_dir"])
        config = LocalSecrets(cache).prepare(config)

        deadline = None
        if deadline_seconds is not None:
            deadline = time.monotonic() + deadline_seconds

        with ConsulClientProvider(
            scheme=config.api_scheme,
            port=config.api_port,
            timeout_seconds=config.request_timeout_seconds,
        ) as provider:
            orchestrator = BootstrapOrchestrator(topology, config, cache, provider)
            console.print(
                f"[bold blue]Bootstrapping {len(topology.clusters)} cluster(s) "
                f"({topology.link_mode.value})...[/bold blue]"
            )
            orchestrator.run_bootstrap(primary_only=primary_only, deadline=deadline)
    except RuntimeHostError as e:
        console.print(f"[bold red]boot failed:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print("[bold green]Bootstrap complete[/bold green]")


@cli.command("secrets")
@click.pass_context
def secrets_cmd(ctx: click.Context) -> None:
    """Show cached secret names with masked values."""
    cache = StoreCredentialCacheFilesystem(ctx.obj["cache_dir"])
    try:
        names = cache.list_names()
        rows = [(name, mask_secret(cache.load(name))) for name in names]
    except RuntimeHostError as e:
        console.print(f"[bold red]cannot read cache:[/bold red] {escape(str(e))}")
        raise SystemExit(1) from e

    if not rows:
        console.print(f"[yellow]No cached secrets in {cache.directory}[/yellow]")
        return

    table = Table(title=f"Cached secrets ({cache.directory})")
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="magenta")
    for name, masked in rows:
        table.add_row(name, masked)
    console.print(table)


if __name__ == "__main__":
    cli()
