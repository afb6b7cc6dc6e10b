"""Core module for ccswitch settings, errors and shared I/O utilities.

This module provides:
- Settings model and singleton access via get_settings()
- File-based settings loading via load_settings()
- Custom exception hierarchy with CcswitchError as base
"""

from ccswitch.core.exceptions import (
    BackendUnavailableError,
    CcswitchError,
    ConfigError,
    DashboardError,
    DescriptorRegistrationError,
    ErrorKind,
    ExternalFileError,
    RecordNotFoundError,
    RecordValidationError,
    StateStoreError,
    StoreError,
    StoreTimeoutError,
    UnknownKindError,
)

__all__ = [
    "BackendUnavailableError",
    "CcswitchError",
    "ConfigError",
    "DashboardError",
    "DescriptorRegistrationError",
    "ErrorKind",
    "ExternalFileError",
    "RecordNotFoundError",
    "RecordValidationError",
    "StateStoreError",
    "StoreError",
    "StoreTimeoutError",
    "UnknownKindError",
]
