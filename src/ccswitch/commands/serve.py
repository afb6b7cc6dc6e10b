"""Serve command for the ccswitch CLI: runs the JSON HTTP API."""

import asyncio
import logging

import typer

from ccswitch.cli_utils import (
    EXIT_ERROR,
    EXIT_SUCCESS,
    _error,
    _open_workspace,
    _warning,
    console,
)
from ccswitch.core.exceptions import DashboardError
from ccswitch.dashboard.server import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DashboardServer,
    find_available_port,
    is_port_available,
)

logger = logging.getLogger(__name__)


def serve_command(
    ctx: typer.Context,
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", help="Port to listen on"),
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Address to bind to"),
    no_auto_port: bool = typer.Option(
        False,
        "--no-auto-port",
        help="Fail instead of picking another port when --port is busy",
    ),
) -> None:
    """Serve the JSON HTTP API."""
    workspace = _open_workspace(ctx)

    if no_auto_port:
        if not is_port_available(port, host):
            _error(f"Port {port} is already in use")
            raise typer.Exit(code=EXIT_ERROR)
        actual_port = port
    else:
        try:
            actual_port = find_available_port(port, host)
        except DashboardError as e:
            _error(str(e))
            raise typer.Exit(code=EXIT_ERROR) from None
        if actual_port != port:
            _warning(f"Port {port} unavailable, using {actual_port}")

    console.print(f"[bold]ccswitch API[/bold] at http://{host}:{actual_port}/api/kinds")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    log_level = logging.getLevelName(logging.getLogger().level).lower()
    server = DashboardServer(workspace, host=host, port=actual_port)
    try:
        asyncio.run(server.run(log_level=log_level))
    except KeyboardInterrupt:
        logger.debug("Interrupted")
    finally:
        workspace.close()

    console.print("Server stopped")
    raise typer.Exit(code=EXIT_SUCCESS)
