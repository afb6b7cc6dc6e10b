"""Typer CLI entry point for ccswitch.

This module only parses arguments and delegates to the workspace managers;
results are printed through the notifier.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import typer
from rich.table import Table

from ccswitch import __version__
from ccswitch.cli_utils import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    _error,
    _exit_with,
    _info,
    _open_manager,
    _open_workspace,
    _setup_logging,
    _warning,
    console,
)
from ccswitch.core.config import mask_secrets
from ccswitch.core.exceptions import ErrorKind
from ccswitch.registry import ConfigDescriptor
from ccswitch.sync import OperationResult

logger = logging.getLogger(__name__)


app = typer.Typer(
    name="ccswitch",
    help="Switch between named configurations of Claude Code and friends",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"ccswitch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to settings YAML (default: ~/.ccswitch/config.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Switch between named configurations of Claude Code and friends."""
    if verbose and quiet:
        _warning("Both --verbose and --quiet specified, --verbose takes precedence")
    _setup_logging(verbose, quiet)
    ctx.obj = {"config": config, "log_level_forced": verbose or quiet}


# =============================================================================
# Helpers
# =============================================================================


def _parse_data(raw: str | None) -> dict[str, Any] | None:
    """Parse a --data JSON object option."""
    if raw is None:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        _error(f"--data is not valid JSON: {e}")
        raise typer.Exit(code=EXIT_ERROR) from None
    if not isinstance(parsed, dict):
        _error("--data must be a JSON object")
        raise typer.Exit(code=EXIT_ERROR)
    return parsed


def _format_data(descriptor: ConfigDescriptor, data: Mapping[str, Any], reveal: bool) -> str:
    if not reveal:
        data = mask_secrets(data, descriptor.secret_fields)
    parts = []
    for key, value in data.items():
        if not isinstance(value, str):
            value = json.dumps(value)
        parts.append(f"{key}={value}")
    return "\n".join(parts)


# =============================================================================
# Record commands
# =============================================================================


@app.command()
def kinds(ctx: typer.Context) -> None:
    """List the available config kinds and the files they manage."""
    workspace = _open_workspace(ctx)
    table = Table(title="Config kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("External file")
    table.add_column("Description", style="dim")
    for descriptor in workspace.kinds():
        path = workspace.client.file_path(descriptor.kind_id)
        table.add_row(
            descriptor.kind_id,
            descriptor.display_name,
            str(path) if path else "-",
            descriptor.description,
        )
    console.print(table)


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    reveal: bool = typer.Option(False, "--reveal", help="Show secret fields unmasked"),
) -> None:
    """List records of a kind; the active one is marked."""
    manager = _open_manager(ctx, kind)
    result = asyncio.run(manager.load())
    if not result.ok:
        _exit_with(result)

    descriptor = manager.descriptor
    records = result.value or []
    if not records:
        _info(f"No {descriptor.display_name} yet. Add one with 'ccswitch add {kind} NAME'.")
        raise typer.Exit(code=EXIT_SUCCESS)

    active_id = manager.active_id
    table = Table(title=descriptor.display_name)
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Data")
    table.add_column("Description")
    for record in records:
        table.add_row(
            "[green]●[/green]" if record.id == active_id else "",
            record.name,
            record.id,
            _format_data(descriptor, record.data, reveal),
            record.description or "",
        )
    console.print(table)


@app.command()
def add(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    name: str = typer.Argument(..., help="Unique record name"),
    data: str | None = typer.Option(
        None, "--data", "-d", help="Record data as a JSON object (merged over defaults)"
    ),
    description: str | None = typer.Option(None, "--description", help="Free text"),
    activate: bool = typer.Option(False, "--activate", "-a", help="Make it the active record"),
) -> None:
    """Create a record."""
    manager = _open_manager(ctx, kind)
    payload = {**manager.descriptor.new_data(), **(_parse_data(data) or {})}
    _exit_with(asyncio.run(manager.create(name, payload, description, activate=activate)))


@app.command()
def edit(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
    name: str | None = typer.Option(None, "--name", help="New name"),
    data: str | None = typer.Option(
        None, "--data", "-d", help="JSON object merged into the record data"
    ),
    description: str | None = typer.Option(None, "--description", help="New description"),
) -> None:
    """Update a record. Editing the active record rewrites its external file."""
    manager = _open_manager(ctx, kind)
    changes = _parse_data(data)

    async def _edit() -> OperationResult[Any]:
        merged: dict[str, Any] | None = None
        if changes is not None:
            loaded = await manager.load()
            if not loaded.ok:
                return loaded
            current = manager.find(record_id)
            if current is None:
                message = f"{manager.descriptor.display_name} {record_id} not found"
                _error(message)
                return OperationResult(ok=False, message=message, error=ErrorKind.NOT_FOUND)
            merged = {**current.data, **changes}
        return await manager.update(record_id, name=name, data=merged, description=description)

    _exit_with(asyncio.run(_edit()))


@app.command()
def remove(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
) -> None:
    """Delete a record."""
    manager = _open_manager(ctx, kind)
    _exit_with(asyncio.run(manager.delete(record_id)))


@app.command()
def activate(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
) -> None:
    """Make a record active and write it to the kind's external file."""
    manager = _open_manager(ctx, kind)

    async def _activate() -> OperationResult[Any]:
        loaded = await manager.load()
        if not loaded.ok:
            return loaded
        return await manager.set_active(record_id)

    _exit_with(asyncio.run(_activate()))


@app.command()
def deactivate(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
) -> None:
    """Unset the active record and write the kind's defaults to its file."""
    manager = _open_manager(ctx, kind)
    _exit_with(asyncio.run(manager.set_active(None)))


# ============================================================================
# Register commands from commands/ modules
# ============================================================================

from ccswitch.commands.backup import (  # noqa: E402
    backup_command,
    backups_command,
    delete_backup_command,
    restore_command,
    show_backup_command,
)
from ccswitch.commands.file import edit_file_command, show_file_command  # noqa: E402
from ccswitch.commands.serve import serve_command  # noqa: E402

app.command(name="backup")(backup_command)
app.command(name="backups")(backups_command)
app.command(name="show-backup")(show_backup_command)
app.command(name="restore")(restore_command)
app.command(name="delete-backup")(delete_backup_command)
app.command(name="show-file")(show_file_command)
app.command(name="edit-file")(edit_file_command)
app.command(name="serve")(serve_command)


if __name__ == "__main__":
    app()
