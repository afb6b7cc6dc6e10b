"""Claude Code Router route kind."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ccswitch.files import write_router_file
from ccswitch.registry.descriptors import ConfigDescriptor, Endpoints

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]


class RouteConfigData(BaseModel):
    """Payload of a route record."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., min_length=1, description="Route path, e.g. /v1/messages")
    method: HttpMethod = Field("GET", description="HTTP method")
    handler: str = Field(..., min_length=1, description="Handler name")
    middleware: list[str] = Field(default_factory=list, description="Middleware chain")
    auth_required: bool = Field(False, description="Whether the route requires auth")


router_kind = ConfigDescriptor(
    kind_id="claude-router",
    display_name="Claude Code Router",
    description="Manage Claude Code Router routes",
    default_data={
        "path": "",
        "method": "GET",
        "handler": "",
        "middleware": [],
        "auth_required": False,
    },
    endpoints=Endpoints(
        create="create_route_config",
        list="get_route_configs_config",
        update="update_route_config",
        delete="delete_route_config",
    ),
    external_file_path="~/.claude/router.json",
    on_activate=write_router_file,
    data_model=RouteConfigData,
)
