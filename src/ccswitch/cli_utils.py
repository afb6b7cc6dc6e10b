"""Shared CLI helpers: console, exit codes, logging, output and workspace setup."""

import logging
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ccswitch.core.config import load_settings
from ccswitch.core.exceptions import ConfigError
from ccswitch.sync import ConfigManager, Notice, OperationResult
from ccswitch.workspace import Workspace

console = Console()

# Exit codes
EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_CONFIG_ERROR: int = 2


def _setup_logging(verbose: bool, quiet: bool) -> None:
    """Configure root logging with a Rich handler.

    --verbose gives DEBUG, --quiet gives WARNING, INFO otherwise. Verbose
    wins when both are given.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    logging.getLogger().setLevel(level)


def _error(message: str) -> None:
    console.print(f"[red]Error:[/red] {escape(message)}")


def _warning(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _success(message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def _info(message: str) -> None:
    console.print(f"[blue]i[/blue] {escape(message)}")


def _print_notice(notice: Notice) -> None:
    """Notifier listener printing notices to the console."""
    if notice.ok:
        _success(notice.message)
    else:
        _error(notice.message)


def _open_workspace(ctx: typer.Context) -> Workspace:
    """Load settings and build a workspace that prints its notices.

    Raises:
        typer.Exit: EXIT_CONFIG_ERROR if settings cannot be loaded.

    """
    options = ctx.ensure_object(dict)
    try:
        settings = load_settings(options.get("config"))
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    if not options.get("log_level_forced"):
        logging.getLogger().setLevel(settings.log_level)

    workspace = Workspace.from_settings(settings)
    workspace.notifier.subscribe(_print_notice)
    return workspace


def _open_manager(ctx: typer.Context, kind: str) -> ConfigManager:
    """Return the manager of a kind.

    Raises:
        typer.Exit: EXIT_CONFIG_ERROR for an unknown kind.

    """
    workspace = _open_workspace(ctx)
    try:
        return workspace.manager(kind)
    except ConfigError as e:
        _error(f"{e}. Run 'ccswitch kinds' to see available kinds.")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None


def _exit_with(result: OperationResult[Any]) -> None:
    raise typer.Exit(code=EXIT_SUCCESS if result.ok else EXIT_ERROR)
