"""Exception hierarchy for ccswitch.

All ccswitch errors derive from CcswitchError. Store failures carry an
ErrorKind so the action layer can turn them into user-facing messages
without inspecting exception types one by one.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure taxonomy reported across the public surface."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    TIMEOUT = "timeout"
    STORE = "store"


class CcswitchError(Exception):
    """Base exception for all ccswitch errors."""

    pass


class ConfigError(CcswitchError):
    """Configuration loading or validation error.

    Raised when:
    - Settings file cannot be read or parsed
    - Settings content fails pydantic validation
    - A config kind is registered twice or looked up but unknown
    """

    pass


class DescriptorRegistrationError(ConfigError):
    """A descriptor could not be registered (duplicate kind id, frozen registry)."""

    pass


class UnknownKindError(ConfigError):
    """Requested config kind is not registered."""

    def __init__(self, kind_id: str) -> None:
        super().__init__(f"Unknown config kind: {kind_id!r}")
        self.kind_id = kind_id


class StoreError(CcswitchError):
    """Generic failure reported by the item or backup store.

    Attributes:
        kind: ErrorKind classification of the failure.

    """

    kind: ErrorKind = ErrorKind.STORE


class RecordValidationError(StoreError):
    """Bad input detected locally (e.g. empty name). Never sent to the store."""

    kind = ErrorKind.VALIDATION


class RecordNotFoundError(StoreError):
    """Referenced record or backup id is unknown to the store."""

    kind = ErrorKind.NOT_FOUND


class BackendUnavailableError(StoreError):
    """Store collaborator cannot be reached."""

    kind = ErrorKind.BACKEND_UNAVAILABLE


class StoreTimeoutError(StoreError):
    """Store call did not complete within the bounded wait."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, timeout: float | None = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class StateStoreError(CcswitchError):
    """Local state file (active pointers) could not be written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ExternalFileError(CcswitchError):
    """External configuration file could not be read or written.

    Attributes:
        path: Path of the file that failed.

    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class DashboardError(CcswitchError):
    """HTTP dashboard could not be started (e.g. no free port)."""

    pass
