"""CLI entry point for pingqueue.

Invoked as::

    pingqueue [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m pingqueue.cli.main
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()
error_console = Console(stderr=True, style="bold red")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_config(config: str | None, data_dir: str | None = None):  # noqa: ANN202
    from pingqueue.config.loader import ConfigLoader

    loader = ConfigLoader()
    try:
        cfg = loader.load(config) if config else loader.load_auto()
        if data_dir is not None:
            cfg = cfg.model_copy(update={"data_dir": Path(data_dir).expanduser()})
    except Exception as exc:  # noqa: BLE001
        error_console.print(f"Could not load config: {exc}", markup=False)
        raise SystemExit(1) from exc
    return cfg


_config_option = click.option(
    "--config",
    "-c",
    default=None,
    help="Path to pingqueue config file.",
)
_data_dir_option = click.option(
    "--data-dir",
    "-d",
    default=None,
    help="Override the data directory holding pending_pings/.",
)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="pingqueue")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    show_default=True,
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """Durable upload queue for telemetry pings"""
    _configure_logging(log_level.upper())


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from pingqueue import __version__

    console.print(f"[bold]pingqueue[/bold] v{__version__}")
    console.print(f"Python {sys.version}")


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--directory",
    default=".",
    show_default=True,
    help="Directory in which to create the config file.",
)
def init_command(directory: str) -> None:
    """Initialise a pingqueue config file in DIRECTORY."""
    from pingqueue.config.defaults import DEFAULT_CONFIG_YAML

    target_dir = Path(directory).resolve()
    config_path = target_dir / "pingqueue.yaml"

    if config_path.exists():
        console.print(
            f"[yellow]Config already exists at {config_path}. Skipping.[/yellow]"
        )
        return

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        config_path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
        console.print(f"[green]Created pingqueue config at {config_path}[/green]")
    except OSError as exc:
        error_console.print(f"Failed to create config: {exc}")
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@cli.command(name="config")
@click.option("--show", is_flag=True, help="Show the current configuration.")
@click.option("--validate", is_flag=True, help="Validate the config file.")
@_config_option
def config_command(show: bool, validate: bool, config: str | None) -> None:
    """Show or validate pingqueue configuration.

    ``--validate`` checks the config file itself, without environment
    overrides, and exits non-zero when it is invalid.
    """
    from pingqueue.config.loader import ConfigLoader
    from pingqueue.config.schema import validate_config
    from pingqueue.schema.errors import ConfigurationError

    if validate:
        loader = ConfigLoader()
        path = Path(config) if config else loader.discover()
        if path is None:
            console.print("[yellow]No config file found; defaults apply.[/yellow]")
        else:
            try:
                validate_config(loader.read_file(path))
            except ConfigurationError as exc:
                error_console.print(f"Validation failed: {exc}", markup=False)
                raise SystemExit(1) from exc
            console.print(f"[green]{path.name} is valid.[/green]")

    if show or not validate:
        console.print_json(_load_config(config).model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@_config_option
@_data_dir_option
def status_command(config: str | None, data_dir: str | None) -> None:
    """Show the pending and quarantined ping files."""
    from pingqueue.schema.errors import PingStorageError
    from pingqueue.storage.scanner import (
        QUARANTINE_DIR,
        get_or_create_ping_directory,
        is_valid_ping_file_name,
        list_ping_files,
    )

    cfg = _load_config(config, data_dir)
    pending_dir = get_or_create_ping_directory(cfg.data_dir)
    quarantine_dir = cfg.data_dir / QUARANTINE_DIR

    try:
        pending = list_ping_files(pending_dir)
        quarantined = list_ping_files(quarantine_dir) if quarantine_dir.is_dir() else []
    except PingStorageError as exc:
        error_console.print(str(exc))
        raise SystemExit(1) from exc

    table = Table(title="pingqueue status", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("server_endpoint", cfg.server_endpoint)
    table.add_row("pending_directory", str(pending_dir))
    table.add_row("pending_pings", str(sum(1 for n in pending if is_valid_ping_file_name(n))))
    table.add_row("foreign_files", str(sum(1 for n in pending if not is_valid_ping_file_name(n))))
    table.add_row("quarantined_pings", str(len(quarantined)))
    table.add_row("debug_tag", cfg.debug_tag or "(none)")

    console.print(table)


# ---------------------------------------------------------------------------
# enqueue
# ---------------------------------------------------------------------------


@cli.command(name="enqueue")
@click.argument("path")
@click.argument("body")
@_config_option
@_data_dir_option
def enqueue_command(path: str, body: str, config: str | None, data_dir: str | None) -> None:
    """Write a ping with URL PATH and serialized BODY to the pending directory."""
    from pingqueue.schema.errors import PingStorageError
    from pingqueue.storage.codec import write_ping_file
    from pingqueue.storage.scanner import get_or_create_ping_directory

    cfg = _load_config(config, data_dir)
    try:
        written = write_ping_file(get_or_create_ping_directory(cfg.data_dir), path, body)
    except (ValueError, PingStorageError) as exc:
        error_console.print(f"Could not enqueue ping: {exc}")
        raise SystemExit(1) from exc
    console.print(f"[green]Enqueued ping {written.name}[/green]")


# ---------------------------------------------------------------------------
# process
# ---------------------------------------------------------------------------


@cli.command(name="process")
@_config_option
@_data_dir_option
@click.option("--json", "as_json", is_flag=True, help="Print the pass report as JSON.")
def process_command(config: str | None, data_dir: str | None, as_json: bool) -> None:
    """Run one upload pass over the pending ping files."""
    from pingqueue.queue.processor import QueueProcessor

    cfg = _load_config(config, data_dir)
    with QueueProcessor(cfg) as processor:
        report = processor.run_pass()

    if as_json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        if not report.outcomes:
            console.print("[dim](No pending ping files)[/dim]")
        else:
            table = Table(title="Upload pass", header_style="bold cyan")
            table.add_column("File")
            table.add_column("Outcome")
            for name, state in sorted(report.outcomes.items()):
                colour = "yellow" if state.is_retained else "green"
                table.add_row(name, f"[{colour}]{state.value}[/{colour}]")
            console.print(table)

    if report.aborted:
        error_console.print("Pending directory could not be listed; pass aborted.")
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# health
# ---------------------------------------------------------------------------


@cli.command(name="health")
@_config_option
@_data_dir_option
@click.option(
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    show_default=True,
    help="Output format.",
)
def health_command(config: str | None, data_dir: str | None, output_format: str) -> None:
    """Run health checks and report status."""
    from pingqueue.health.check import HealthCheck, HealthStatus

    cfg = _load_config(config, data_dir)

    hc = HealthCheck()
    hc.register_pending_directory_check(cfg.data_dir)
    hc.register_quarantine_check(cfg.data_dir)

    report = hc.run_checks()

    if output_format == "json":
        console.print_json(json.dumps(report.to_dict()))
    else:
        status_colour = {
            HealthStatus.HEALTHY: "green",
            HealthStatus.DEGRADED: "yellow",
            HealthStatus.UNHEALTHY: "red",
        }
        colour = status_colour.get(report.status, "white")
        console.print(
            f"Overall status: [{colour}]{report.status.value.upper()}[/{colour}]"
        )

        table = Table(header_style="bold cyan")
        table.add_column("Check")
        table.add_column("Status")
        table.add_column("Message")
        for name, result in report.checks.items():
            c = status_colour.get(result.status, "white")
            table.add_row(name, f"[{c}]{result.status.value}[/{c}]", result.message)
        console.print(table)

    if report.status is HealthStatus.UNHEALTHY:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
