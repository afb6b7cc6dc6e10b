"""Dashboard HTTP server for ccswitch.

Serves the JSON API over a Workspace using Starlette/Uvicorn.

Public API:
    DashboardServer: Server wrapping one workspace
    find_available_port: First free port starting at a given one
"""

import asyncio
import contextlib
import logging
import socket
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import BaseRoute

from ccswitch.core.exceptions import DashboardError
from ccswitch.dashboard.routes import API_ROUTES
from ccswitch.workspace import Workspace

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9600


def is_port_available(port: int, host: str = DEFAULT_HOST) -> bool:
    """Check if port is available for binding."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            return True
    except OSError:
        return False


def find_available_port(
    start_port: int = DEFAULT_PORT,
    host: str = DEFAULT_HOST,
    max_attempts: int = 10,
) -> int:
    """Return the first free port among start_port, start_port + 2, ...

    Raises:
        DashboardError: If none of the max_attempts candidates is free.

    """
    candidates = range(start_port, start_port + 2 * max_attempts, 2)
    for port in candidates:
        if is_port_available(port, host):
            return port
    raise DashboardError(
        f"No free port between {candidates[0]} and {candidates[-1]}; pass another --port"
    )


class DashboardServer:
    """HTTP API over one workspace.

    Attributes:
        workspace: Components every request operates on.
        host: Address to bind to.
        port: Port to bind to.
        lock: Serializes requests touching the workspace.

    """

    def __init__(
        self,
        workspace: Workspace,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.workspace = workspace
        self.host = host
        self.port = port
        self.lock = asyncio.Lock()

    def create_app(self) -> Starlette:
        """Create and configure Starlette application."""
        middleware = [
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],  # Local use only
                allow_methods=["*"],
                allow_headers=["*"],
            ),
        ]
        routes: list[BaseRoute] = list(API_ROUTES)

        app = Starlette(
            routes=routes,
            middleware=middleware,
            lifespan=self._lifespan,
        )
        app.state.server = self
        return app

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        logger.info("Dashboard server starting at http://%s:%d", self.host, self.port)
        try:
            yield
        finally:
            logger.info("Dashboard server shutting down...")
            self.workspace.close()

    async def run(self, log_level: str = "info") -> None:
        """Start the server and run until shutdown."""
        import uvicorn

        config = uvicorn.Config(
            self.create_app(),
            host=self.host,
            port=self.port,
            log_level=log_level,
        )
        server = uvicorn.Server(config)
        await server.serve()
