"""ez-rke CLI - terminal dashboard for a managed cluster."""

import asyncio
import termios
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ez_rke.config import Settings, Topology, TopologyError, load_topology
from ez_rke.tui.app import run_dashboard

app = typer.Typer(
    name="ez-rke",
    help="Terminal dashboard for a managed cluster",
    no_args_is_help=True,
)

console = Console()


def _load_settings(**overrides: object) -> Settings:
    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        console.print(f"[red]Invalid settings: {e}[/red]")
        raise typer.Exit(1)


def _load_topology(path: Path) -> Topology:
    try:
        return load_topology(path)
    except TopologyError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command("dashboard")
def dashboard(
    config: Path = typer.Option(
        None, "--config", "-c", help="Topology file (default: $EZ_RKE_CONFIG_PATH or ez_rke.yaml)"
    ),
    tick_rate: int = typer.Option(
        None, "--tick-rate", "-t", help="Milliseconds between clock ticks"
    ),
    log_level: str = typer.Option(
        None, "--log-level", "-l", help="TRACE, DEBUG, INFO, WARN or ERROR"
    ),
    heartbeat: float = typer.Option(
        0.0, "--heartbeat", help="Emit a debug record every N seconds (0 disables)"
    ),
) -> None:
    """
    Run the interactive dashboard.

    Keys:
        d: toggle the log panel
        q, Esc, Ctrl+C: quit

    Environment variables:
        EZ_RKE_CONFIG_PATH: Topology file
        EZ_RKE_TICK_RATE_MS: Clock tick interval
        EZ_RKE_LOG_FILE: JSON log file (empty disables)
        EZ_RKE_LOG_LEVEL: Minimum log level
        EZ_RKE_LOG_CAPACITY: Records kept for the log panel
    """
    settings = _load_settings(config_path=config, tick_rate_ms=tick_rate, log_level=log_level)
    topology = _load_topology(settings.config_path)

    try:
        asyncio.run(run_dashboard(settings, topology, heartbeat=heartbeat))
    except (OSError, EOFError, termios.error) as e:
        console.print(f"[red]Terminal error: {e}[/red]")
        raise typer.Exit(1)


@app.command("show-config")
def show_config(
    config: Path = typer.Option(
        None, "--config", "-c", help="Topology file (default: $EZ_RKE_CONFIG_PATH or ez_rke.yaml)"
    ),
) -> None:
    """Validate the topology file and print it."""
    settings = _load_settings(config_path=config)
    topology = _load_topology(settings.config_path)

    table = Table(title=f"Topology ({settings.config_path})")
    table.add_column("Role", style="cyan")
    table.add_column("Node")
    for name in topology.control:
        table.add_row("control", name)
    for name in topology.worker:
        table.add_row("worker", name)
    if topology.vip is not None:
        table.add_row("vip", topology.vip)
    console.print(table)

    if not topology.control:
        console.print("[yellow]No control plane nodes configured[/yellow]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
