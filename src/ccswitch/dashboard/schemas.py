"""Request body schemas for the dashboard API."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class CreateItemRequest(BaseModel):
    """POST /api/kinds/{kind}/items body."""

    model_config = ConfigDict(extra="forbid")

    name: str
    data: dict[str, Any] | None = None
    description: str | None = None
    activate: bool = False


class UpdateItemRequest(BaseModel):
    """PUT /api/kinds/{kind}/items/{id} body. Omitted fields stay unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    data: dict[str, Any] | None = None
    description: str | None = None
    activate: bool = False


class SetActiveRequest(BaseModel):
    """PUT /api/kinds/{kind}/active body. A null id unsets the kind."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None


class WriteFileRequest(BaseModel):
    """PUT /api/kinds/{kind}/file body: the complete new file text."""

    model_config = ConfigDict(extra="forbid")

    content: str
