"""Dashboard API routes.

All routes return JSON. Failures use ``{"error": <kind>, "message": <text>}``
with the status code of their error kind (400, 404, 503, 504 or 500).
"""

from starlette.routing import BaseRoute

from .backups import routes as backup_routes
from .kinds import routes as kind_routes

API_ROUTES: list[BaseRoute] = [*kind_routes, *backup_routes]

__all__ = ["API_ROUTES"]
