"""Backup commands for the ccswitch CLI.

Snapshots of a kind's external file are stored in the database; restoring
one rewrites the file and reloads the kind's records.
"""

import asyncio

import typer
from rich.syntax import Syntax
from rich.table import Table

from ccswitch.cli_utils import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    _error,
    _exit_with,
    _info,
    _open_manager,
    _open_workspace,
    console,
)
from ccswitch.core.exceptions import CcswitchError
from ccswitch.sync import ConfigManager


def _manager_for(ctx: typer.Context, filename: str) -> ConfigManager:
    """Return the manager of the kind a backup belongs to.

    Raises:
        typer.Exit: EXIT_ERROR when the backup does not exist.

    """
    workspace = _open_workspace(ctx)
    try:
        return asyncio.run(workspace.manager_for_backup(filename))
    except CcswitchError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_ERROR) from None


def backup_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
) -> None:
    """Snapshot a kind's external file."""
    manager = _open_manager(ctx, kind)
    _exit_with(asyncio.run(manager.backups.backup()))


def backups_command(
    ctx: typer.Context,
    kind: str | None = typer.Argument(None, help="Only show backups of this kind"),
) -> None:
    """List backups, newest first."""
    if kind is not None:
        manager = _open_manager(ctx, kind)
        result = asyncio.run(manager.backups.refresh())
        if not result.ok:
            _exit_with(result)
        snapshots = result.value or []
    else:
        workspace = _open_workspace(ctx)
        try:
            snapshots = asyncio.run(workspace.client.list_backups())
        except CcswitchError as e:
            _error(str(e))
            raise typer.Exit(code=EXIT_ERROR) from None

    if not snapshots:
        _info("No backups yet")
        raise typer.Exit(code=EXIT_SUCCESS)

    table = Table(title="Backups")
    table.add_column("Filename", style="cyan")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    table.add_column("Created")
    for snapshot in snapshots:
        table.add_row(
            snapshot.filename,
            snapshot.kind_id,
            f"{snapshot.size_bytes:,} B",
            snapshot.created_at,
        )
    console.print(table)


def show_backup_command(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Backup filename"),
) -> None:
    """Print a backup's content."""
    manager = _manager_for(ctx, filename)
    result = asyncio.run(manager.backups.show_preview(filename))
    if not result.ok or result.value is None:
        _exit_with(result)
        return
    console.print(Syntax(result.value.content, "json", word_wrap=True))


def restore_command(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Backup filename"),
) -> None:
    """Restore a backup into its kind's external file."""
    manager = _manager_for(ctx, filename)
    _exit_with(asyncio.run(manager.backups.restore(filename)))


def delete_backup_command(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Backup filename"),
) -> None:
    """Delete a backup."""
    manager = _manager_for(ctx, filename)
    _exit_with(asyncio.run(manager.backups.delete(filename)))
