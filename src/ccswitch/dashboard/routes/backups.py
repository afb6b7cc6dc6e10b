"""Backup route handlers.

Provides endpoints for taking, listing, viewing, restoring and deleting
snapshots of a kind's external file.
"""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ccswitch.core.exceptions import CcswitchError
from ccswitch.sync import ConfigManager
from ccswitch.sync.results import error_kind_of

from . import utils

logger = logging.getLogger(__name__)


async def _backup_manager(request: Request) -> ConfigManager:
    """Return the manager owning the ``{filename}`` snapshot.

    Raises:
        RequestError: 404 when the snapshot does not exist.

    """
    filename = request.path_params["filename"]
    try:
        return await utils._workspace(request).manager_for_backup(filename)
    except CcswitchError as e:
        kind = error_kind_of(e)
        raise utils.RequestError(
            utils._error_response(kind.value, str(e), utils.STATUS_BY_ERROR[kind])
        ) from None


@utils.locked_handler
async def get_backups(request: Request) -> JSONResponse:
    """GET /api/kinds/{kind}/backups - List a kind's snapshots, newest first."""
    manager = utils._manager(request)
    result = await manager.backups.refresh()
    if not result.ok:
        return utils._failure(result)
    return JSONResponse(
        {"backups": [utils._snapshot_json(snapshot) for snapshot in result.value or []]}
    )


@utils.locked_handler
async def post_backup(request: Request) -> JSONResponse:
    """POST /api/kinds/{kind}/backups - Snapshot the kind's external file."""
    manager = utils._manager(request)
    result = await manager.backups.backup()
    if not result.ok or result.value is None:
        return utils._failure(result)
    return JSONResponse(
        {"backup": utils._snapshot_json(result.value), "message": result.message},
        status_code=201,
    )


@utils.locked_handler
async def get_backup_content(request: Request) -> JSONResponse:
    """GET /api/backups/{filename} - Snapshot content for preview."""
    manager = await _backup_manager(request)
    result = await manager.backups.show_preview(request.path_params["filename"])
    if not result.ok or result.value is None:
        return utils._failure(result)
    return JSONResponse(
        {
            "filename": result.value.filename,
            "kind": manager.kind_id,
            "content": result.value.content,
        }
    )


@utils.locked_handler
async def post_restore(request: Request) -> JSONResponse:
    """POST /api/backups/{filename}/restore - Restore and reload the kind's records."""
    manager = await _backup_manager(request)
    result = await manager.backups.restore(request.path_params["filename"])
    if not result.ok:
        return utils._failure(result)
    return JSONResponse(
        {
            "restored": request.path_params["filename"],
            "kind": manager.kind_id,
            "items": [
                utils._record_json(manager.descriptor, record, reveal=False)
                for record in manager.state.records
            ],
            "active_id": manager.active_id,
            "message": result.message,
        }
    )


@utils.locked_handler
async def delete_backup(request: Request) -> JSONResponse:
    """DELETE /api/backups/{filename} - Delete a snapshot."""
    manager = await _backup_manager(request)
    result = await manager.backups.delete(request.path_params["filename"])
    if not result.ok:
        return utils._failure(result)
    return JSONResponse({"deleted": True, "message": result.message})


routes = [
    Route("/api/kinds/{kind}/backups", get_backups, methods=["GET"]),
    Route("/api/kinds/{kind}/backups", post_backup, methods=["POST"]),
    Route("/api/backups/{filename}", get_backup_content, methods=["GET"]),
    Route("/api/backups/{filename}/restore", post_restore, methods=["POST"]),
    Route("/api/backups/{filename}", delete_backup, methods=["DELETE"]),
]
