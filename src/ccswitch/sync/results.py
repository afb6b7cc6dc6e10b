"""Uniform action results and user-facing failure messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from ccswitch.core.exceptions import CcswitchError, ErrorKind, StoreError

__all__ = ["OperationResult", "error_kind_of", "failure_message"]

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a public action.

    Attributes:
        ok: Whether the action succeeded.
        value: Action payload (record, snapshot, content...), if any.
        message: The text posted on the notifier.
        error: ErrorKind of a failure.

    """

    ok: bool
    value: T | None = None
    message: str = ""
    error: ErrorKind | None = None


def error_kind_of(exc: BaseException) -> ErrorKind:
    if isinstance(exc, StoreError):
        return exc.kind
    return ErrorKind.STORE


def failure_message(action: str, subject: str, exc: CcswitchError) -> str:
    """Build the notice text for a failed action.

    Timeouts and unreachable stores get distinct wording; validation and
    not-found errors carry their own text; anything else is shown verbatim
    after a generic prefix.
    """
    kind = error_kind_of(exc)
    if kind is ErrorKind.TIMEOUT:
        return f"Timed out while trying to {action} {subject}, please retry"
    if kind is ErrorKind.BACKEND_UNAVAILABLE:
        return f"Cannot {action} {subject}: the store is unavailable"
    if kind in (ErrorKind.VALIDATION, ErrorKind.NOT_FOUND):
        return str(exc)
    return f"Failed to {action} {subject}: {exc}"
