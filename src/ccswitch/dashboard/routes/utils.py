"""Shared helpers for dashboard route handlers."""

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ccswitch.core.config import mask_secrets
from ccswitch.core.exceptions import ErrorKind, UnknownKindError
from ccswitch.registry import ConfigDescriptor
from ccswitch.store.models import BackupSnapshot, ConfigRecord
from ccswitch.sync import ConfigManager, OperationResult
from ccswitch.workspace import Workspace

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

STATUS_BY_ERROR: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BACKEND_UNAVAILABLE: 503,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.STORE: 500,
}


class RequestError(Exception):
    """Request cannot be served; carries the JSON error response."""

    def __init__(self, response: JSONResponse) -> None:
        super().__init__(response.status_code)
        self.response = response


def _error_response(error: str, message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


def _workspace(request: Request) -> Workspace:
    workspace: Workspace = request.app.state.server.workspace
    return workspace


def _manager(request: Request) -> ConfigManager:
    """Return the manager of the ``{kind}`` path parameter.

    Raises:
        RequestError: 404 for an unknown kind.

    """
    kind = request.path_params["kind"]
    try:
        return _workspace(request).manager(kind)
    except UnknownKindError as e:
        raise RequestError(_error_response("unknown_kind", str(e), 404)) from None


async def _parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Parse and validate a JSON body.

    Raises:
        RequestError: 400 for invalid JSON or a body failing validation.

    """
    try:
        body = await request.json()
    except json.JSONDecodeError as e:
        raise RequestError(_error_response("invalid_json", f"Invalid JSON: {e}", 400)) from None
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise RequestError(
            _error_response(ErrorKind.VALIDATION.value, str(e), 400)
        ) from None


def _failure(result: OperationResult[Any]) -> JSONResponse:
    error = result.error or ErrorKind.STORE
    return _error_response(error.value, result.message, STATUS_BY_ERROR[error])


def _record_json(
    descriptor: ConfigDescriptor, record: ConfigRecord, reveal: bool = True
) -> dict[str, Any]:
    payload = record.model_dump()
    if not reveal:
        payload["data"] = mask_secrets(record.data, descriptor.secret_fields)
    return payload


def _snapshot_json(snapshot: BackupSnapshot) -> dict[str, Any]:
    return snapshot.model_dump()


Handler = Callable[[Request], Awaitable[Response]]


def locked_handler(func: Handler) -> Handler:
    """Run a handler under the server lock, turning errors into JSON responses."""

    @functools.wraps(func)
    async def wrapper(request: Request) -> Response:
        async with request.app.state.server.lock:
            try:
                return await func(request)
            except RequestError as e:
                return e.response
            except Exception as e:
                logger.exception("%s %s failed", request.method, request.url.path)
                return _error_response("server_error", str(e), 500)

    return wrapper
