"""Raw external file commands for the ccswitch CLI.

``show-file`` prints the file a kind manages; ``edit-file`` replaces it with
hand-edited JSON and reloads the kind, so an edited marker moves the active
pointer.
"""

import asyncio
from pathlib import Path

import typer
from rich.markup import escape
from rich.syntax import Syntax

from ccswitch.cli_utils import (
    EXIT_ERROR,
    _error,
    _exit_with,
    _info,
    _open_manager,
    console,
)


def show_file_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
) -> None:
    """Print the content of a kind's external file."""
    manager = _open_manager(ctx, kind)
    result = asyncio.run(manager.read_file())
    if not result.ok:
        _exit_with(result)
        return
    console.print(f"[dim]{escape(str(manager.file_path))}[/dim]")
    if not result.value:
        _info("The file does not exist yet")
        return
    console.print(Syntax(result.value, "json", word_wrap=True))


def edit_file_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="Config kind id"),
    content: str | None = typer.Option(
        None, "--content", help="New file content (a JSON object)"
    ),
    source: Path | None = typer.Option(
        None,
        "--from",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Read the new content from this file",
    ),
) -> None:
    """Replace a kind's external file, then reload its records."""
    if (content is None) == (source is None):
        _error("Pass exactly one of --content or --from")
        raise typer.Exit(code=EXIT_ERROR)
    text = content if content is not None else source.read_text(encoding="utf-8")

    manager = _open_manager(ctx, kind)
    _exit_with(asyncio.run(manager.write_file(text)))
