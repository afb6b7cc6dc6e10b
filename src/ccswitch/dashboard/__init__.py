"""JSON HTTP API over a ccswitch workspace (Starlette + Uvicorn)."""

from ccswitch.dashboard.server import DashboardServer, find_available_port, is_port_available

__all__ = ["DashboardServer", "find_available_port", "is_port_available"]
