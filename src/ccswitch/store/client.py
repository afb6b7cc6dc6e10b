"""Item Store Client.

Async facade over the item and backup store collaborators. It validates
input before anything reaches the store, bounds list() with a timeout and
normalizes every collaborator failure into the StoreError taxonomy:

- RecordValidationError: bad input, detected locally
- RecordNotFoundError: unknown record id or backup filename
- BackendUnavailableError: collaborator cannot be reached
- StoreTimeoutError: list() exceeded the bounded wait
- StoreError: anything else the backend reported

list() never raises; it returns a ListResult with an empty record list and
the error instead.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import anyio
from pydantic import ValidationError

from ccswitch.core.config.constants import DEFAULT_LIST_TIMEOUT
from ccswitch.core.exceptions import (
    BackendUnavailableError,
    CcswitchError,
    RecordValidationError,
    StoreError,
    StoreTimeoutError,
)
from ccswitch.core.io import backup_filename
from ccswitch.registry import Capability, ConfigDescriptor, DescriptorRegistry
from ccswitch.store.models import BackupSnapshot, ConfigRecord
from ccswitch.store.protocols import BackupStore, ItemStore

logger = logging.getLogger(__name__)

__all__ = ["ItemStoreClient", "ListResult"]


@dataclass(frozen=True)
class ListResult:
    """Outcome of a list() call: records, or an empty list plus the error."""

    records: list[ConfigRecord] = field(default_factory=list)
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@asynccontextmanager
async def _normalized(action: str) -> AsyncIterator[None]:
    """Translate collaborator failures into the StoreError taxonomy."""
    try:
        yield
    except CcswitchError:
        raise
    except TimeoutError as e:
        raise StoreTimeoutError(f"{action} timed out") from e
    except (ConnectionError, OSError) as e:
        raise BackendUnavailableError(f"{action} failed: store unreachable ({e})") from e
    except Exception as e:
        raise StoreError(f"{action} failed: {e}") from e


def _validate_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise RecordValidationError("Name is required")
    return name.strip()


def _validate_data(descriptor: ConfigDescriptor, data: Mapping[str, Any]) -> dict[str, Any]:
    if descriptor.data_model is not None:
        try:
            descriptor.data_model.model_validate(dict(data))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'data'}: {err['msg']}"
                for err in e.errors()
            )
            raise RecordValidationError(f"Invalid {descriptor.display_name} data: {errors}") from e
    return dict(data)


def _to_record(raw: Any) -> ConfigRecord:
    try:
        return ConfigRecord.model_validate(raw)
    except ValidationError as e:
        raise StoreError(f"Store returned a malformed record: {e}") from e


class ItemStoreClient:
    """CRUD and backup calls against the store collaborators.

    Attributes:
        registry: Descriptor registry used to resolve kinds and commands.
        list_timeout: Bounded wait for list(), in seconds.

    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        store: ItemStore,
        backups: BackupStore,
        *,
        list_timeout: float = DEFAULT_LIST_TIMEOUT,
        file_overrides: Mapping[str, str] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.registry = registry
        self.list_timeout = list_timeout
        self._store = store
        self._backups = backups
        self._file_overrides = dict(file_overrides or {})
        self._clock = clock

    def file_path(self, kind_id: str) -> Path | None:
        """Return the external file path of a kind, with settings overrides."""
        return self.registry.get(kind_id).resolve_file_path(self._file_overrides)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def list(self, kind_id: str) -> ListResult:
        """List a kind's records within the bounded wait.

        Returns:
            ListResult with records in store order, or an empty list and the
            normalized error.

        """
        descriptor = self.registry.get(kind_id)
        try:
            async with _normalized(f"Loading {descriptor.display_name}"):
                with anyio.fail_after(self.list_timeout):
                    raw = await self._store.call(descriptor.endpoints.list)
                records = [_to_record(item) for item in raw or []]
        except StoreTimeoutError as e:
            e.timeout = self.list_timeout
            logger.warning("Listing %s timed out after %.1fs", kind_id, self.list_timeout)
            return ListResult(error=e)
        except StoreError as e:
            logger.warning("Listing %s failed: %s", kind_id, e)
            return ListResult(error=e)

        logger.debug("Loaded %d %s records", len(records), kind_id)
        return ListResult(records=records)

    async def create(
        self,
        kind_id: str,
        name: str,
        data: Mapping[str, Any],
        description: str | None = None,
    ) -> ConfigRecord:
        """Create a record.

        Raises:
            RecordValidationError: If name is blank or data fails validation.
            StoreError: If the store rejects the record (e.g. duplicate name).

        """
        descriptor = self.registry.get(kind_id)
        clean_name = _validate_name(name)
        clean_data = _validate_data(descriptor, data)
        async with _normalized(f"Creating {descriptor.display_name}"):
            raw = await self._store.call(
                descriptor.endpoints.create,
                name=clean_name,
                data=clean_data,
                description=description,
            )
        return _to_record(raw)

    async def update(
        self,
        kind_id: str,
        record_id: str,
        *,
        name: str | None = None,
        data: Mapping[str, Any] | None = None,
        description: str | None = None,
    ) -> ConfigRecord:
        """Apply a partial update. Omitted fields stay unchanged.

        Raises:
            RecordValidationError: If a given name is blank or data is invalid.
            RecordNotFoundError: If the id is unknown to the store.

        """
        descriptor = self.registry.get(kind_id)
        params: dict[str, Any] = {"id": record_id}
        if name is not None:
            params["name"] = _validate_name(name)
        if data is not None:
            params["data"] = _validate_data(descriptor, data)
        if description is not None:
            params["description"] = description
        async with _normalized(f"Updating {descriptor.display_name}"):
            raw = await self._store.call(descriptor.endpoints.update, **params)
        return _to_record(raw)

    async def delete(self, kind_id: str, record_id: str) -> bool:
        """Delete a record. Returns False when it was already absent."""
        descriptor = self.registry.get(kind_id)
        async with _normalized(f"Deleting {descriptor.display_name}"):
            deleted = await self._store.call(descriptor.endpoints.delete, id=record_id)
        return bool(deleted)

    async def set_active(self, kind_id: str, record_id: str, active: bool) -> bool:
        """Tell the store which record is active (SET_ACTIVE kinds only).

        Raises:
            RecordValidationError: If the kind does not support it.

        """
        descriptor = self.registry.get(kind_id)
        if not descriptor.supports(Capability.SET_ACTIVE) or not descriptor.endpoints.set_active:
            raise RecordValidationError(
                f"{descriptor.display_name} does not track an active record in the store"
            )
        async with _normalized(f"Activating {descriptor.display_name}"):
            result = await self._store.call(
                descriptor.endpoints.set_active, id=record_id, active=active
            )
        return bool(result)

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    async def backup(self, kind_id: str) -> BackupSnapshot:
        """Snapshot a kind's external file under a time-derived filename.

        Raises:
            RecordValidationError: If the kind has no external file.
            RecordNotFoundError: If the external file does not exist.

        """
        descriptor = self.registry.get(kind_id)
        path = self.file_path(kind_id)
        if path is None:
            raise RecordValidationError(f"{descriptor.display_name} has no external file")
        async with _normalized(f"Backing up {descriptor.display_name}"):
            existing = {b.filename for b in await self._backups.list_backups()}
            filename = backup_filename(kind_id, self._clock(), exists=existing.__contains__)
            return await self._backups.snapshot(kind_id, filename, path)

    async def list_backups(self, kind_id: str | None = None) -> list[BackupSnapshot]:
        """List snapshots, newest first, optionally for one kind."""
        async with _normalized("Listing backups"):
            return await self._backups.list_backups(kind_id)

    async def preview_backup(self, filename: str) -> str:
        """Return the raw content of a snapshot."""
        async with _normalized(f"Reading backup {filename}"):
            return await self._backups.preview(filename)

    async def restore_backup(self, filename: str) -> BackupSnapshot:
        """Write a snapshot back to its kind's external file.

        The store pushes no change notifications: callers must refresh the
        kind's records with list() afterwards.

        Returns:
            The restored snapshot (its kind_id tells which kind to refresh).

        """
        async with _normalized(f"Restoring backup {filename}"):
            snapshot = await self._backups.get(filename)
            path = self.file_path(snapshot.kind_id)
            if path is None:
                raise RecordValidationError(
                    f"{snapshot.kind_id} has no external file to restore into"
                )
            await self._backups.restore(filename, path)
        return snapshot

    async def delete_backup(self, filename: str) -> bool:
        """Delete a snapshot. Returns False when it did not exist."""
        async with _normalized(f"Deleting backup {filename}"):
            return await self._backups.delete(filename)
