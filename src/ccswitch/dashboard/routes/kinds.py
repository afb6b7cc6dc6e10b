"""Config kind and record route handlers."""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ccswitch.core.exceptions import ErrorKind
from ccswitch.dashboard.schemas import (
    CreateItemRequest,
    SetActiveRequest,
    UpdateItemRequest,
    WriteFileRequest,
)

from . import utils

logger = logging.getLogger(__name__)


@utils.locked_handler
async def get_kinds(request: Request) -> JSONResponse:
    """GET /api/kinds - Descriptors in display order with their active record id."""
    workspace = utils._workspace(request)
    kinds = []
    for descriptor in workspace.kinds():
        path = workspace.client.file_path(descriptor.kind_id)
        kinds.append(
            {
                "kind_id": descriptor.kind_id,
                "display_name": descriptor.display_name,
                "description": descriptor.description,
                "external_file": str(path) if path else None,
                "capabilities": sorted(c.value for c in descriptor.capabilities),
                "active_id": workspace.tracker.get(descriptor.kind_id),
            }
        )
    return JSONResponse({"kinds": kinds})


@utils.locked_handler
async def get_items(request: Request) -> JSONResponse:
    """GET /api/kinds/{kind}/items?reveal=true - List records, reconciling first.

    Secret fields are masked unless ``reveal`` is true or the record was
    toggled visible.
    """
    manager = utils._manager(request)
    visibility = utils._workspace(request).visibility
    reveal = request.query_params.get("reveal", "").lower() in ("1", "true", "yes")
    result = await manager.load()
    if not result.ok:
        return utils._failure(result)
    return JSONResponse(
        {
            "kind": manager.kind_id,
            "items": [
                utils._record_json(
                    manager.descriptor,
                    record,
                    reveal or visibility.is_revealed(manager.kind_id, record.id),
                )
                for record in result.value or []
            ],
            "active_id": manager.active_id,
            "reconcile": manager.state.reconcile.value if manager.state.reconcile else None,
        }
    )


@utils.locked_handler
async def post_item(request: Request) -> JSONResponse:
    """POST /api/kinds/{kind}/items - Create a record (optionally activating it)."""
    manager = utils._manager(request)
    body = await utils._parse_body(request, CreateItemRequest)
    result = await manager.create(
        body.name, body.data, body.description, activate=body.activate
    )
    if result.value is None:
        return utils._failure(result)
    return JSONResponse(
        {
            "item": utils._record_json(manager.descriptor, result.value),
            "active_id": manager.active_id,
            "message": result.message,
        },
        status_code=201,
    )


@utils.locked_handler
async def put_item(request: Request) -> JSONResponse:
    """PUT /api/kinds/{kind}/items/{id} - Partial update."""
    manager = utils._manager(request)
    body = await utils._parse_body(request, UpdateItemRequest)
    result = await manager.update(
        request.path_params["id"],
        name=body.name,
        data=body.data,
        description=body.description,
        activate=body.activate,
    )
    if result.value is None:
        return utils._failure(result)
    return JSONResponse(
        {
            "item": utils._record_json(manager.descriptor, result.value),
            "active_id": manager.active_id,
            "message": result.message,
        }
    )


@utils.locked_handler
async def delete_item(request: Request) -> JSONResponse:
    """DELETE /api/kinds/{kind}/items/{id} - Delete a record."""
    manager = utils._manager(request)
    result = await manager.delete(request.path_params["id"])
    if not result.ok:
        return utils._failure(result)
    return JSONResponse({"deleted": True, "active_id": manager.active_id})


@utils.locked_handler
async def put_active(request: Request) -> JSONResponse:
    """PUT /api/kinds/{kind}/active - Activate a record, or unset with a null id."""
    manager = utils._manager(request)
    body = await utils._parse_body(request, SetActiveRequest)
    if body.id is not None and manager.find(body.id) is None:
        loaded = await manager.load()
        if not loaded.ok:
            return utils._failure(loaded)
    result = await manager.set_active(body.id)
    if not result.ok and manager.active_id != body.id:
        return utils._failure(result)
    return JSONResponse(
        {"active_id": manager.active_id, "ok": result.ok, "message": result.message}
    )


@utils.locked_handler
async def post_visibility(request: Request) -> JSONResponse:
    """POST /api/kinds/{kind}/items/{id}/visibility - Toggle one record's secrets."""
    manager = utils._manager(request)
    record_id = request.path_params["id"]
    if manager.find(record_id) is None:
        loaded = await manager.load()
        if not loaded.ok:
            return utils._failure(loaded)
        if manager.find(record_id) is None:
            return utils._error_response(
                ErrorKind.NOT_FOUND.value,
                f"{manager.descriptor.display_name} {record_id} not found",
                404,
            )
    revealed = utils._workspace(request).visibility.toggle(manager.kind_id, record_id)
    return JSONResponse({"id": record_id, "revealed": revealed})


@utils.locked_handler
async def post_visibility_reset(request: Request) -> JSONResponse:
    """POST /api/visibility/reset - Mask the secrets of every record again."""
    utils._workspace(request).visibility.reset_all()
    return JSONResponse({"reset": True})


@utils.locked_handler
async def get_file(request: Request) -> JSONResponse:
    """GET /api/kinds/{kind}/file - Raw text of the kind's external file."""
    manager = utils._manager(request)
    result = await manager.read_file()
    if not result.ok:
        return utils._failure(result)
    return JSONResponse(
        {"kind": manager.kind_id, "path": str(manager.file_path), "content": result.value}
    )


@utils.locked_handler
async def put_file(request: Request) -> JSONResponse:
    """PUT /api/kinds/{kind}/file - Replace the file with edited JSON, then reload."""
    manager = utils._manager(request)
    body = await utils._parse_body(request, WriteFileRequest)
    result = await manager.write_file(body.content)
    if not result.ok:
        return utils._failure(result)
    return JSONResponse(
        {
            "path": str(result.value),
            "active_id": manager.active_id,
            "message": result.message,
        }
    )


routes = [
    Route("/api/kinds", get_kinds, methods=["GET"]),
    Route("/api/kinds/{kind}/items", get_items, methods=["GET"]),
    Route("/api/kinds/{kind}/items", post_item, methods=["POST"]),
    Route("/api/kinds/{kind}/items/{id}", put_item, methods=["PUT"]),
    Route("/api/kinds/{kind}/items/{id}", delete_item, methods=["DELETE"]),
    Route("/api/kinds/{kind}/active", put_active, methods=["PUT"]),
    Route("/api/kinds/{kind}/items/{id}/visibility", post_visibility, methods=["POST"]),
    Route("/api/visibility/reset", post_visibility_reset, methods=["POST"]),
    Route("/api/kinds/{kind}/file", get_file, methods=["GET"]),
    Route("/api/kinds/{kind}/file", put_file, methods=["PUT"]),
]
