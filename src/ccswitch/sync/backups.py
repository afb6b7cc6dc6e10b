"""Backup Lifecycle Manager.

Per-kind orchestration of snapshot/list/preview/restore/delete on top of the
store client, plus the local state a restore picker needs: the snapshot
list, whether the picker is open, the previewed snapshot and a restore in
progress flag.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ccswitch.core.exceptions import CcswitchError, ErrorKind
from ccswitch.registry import ConfigDescriptor
from ccswitch.store.client import ItemStoreClient
from ccswitch.store.models import BackupSnapshot
from ccswitch.sync.notifications import Notifier
from ccswitch.sync.results import OperationResult, error_kind_of, failure_message

logger = logging.getLogger(__name__)

__all__ = ["BackupLifecycle", "BackupPreview"]

# Reloads the kind's records after a restore (and reconciles)
RefreshItems = Callable[[], Awaitable[OperationResult[Any]]]


@dataclass(frozen=True)
class BackupPreview:
    filename: str
    content: str


class BackupLifecycle:
    """Backup actions and restore-picker state for one config kind.

    Attributes:
        snapshots: Last fetched snapshots of this kind, newest first.
        selecting: Whether the restore picker is open.
        preview: Snapshot currently previewed, if any.
        restoring: Whether a restore is in flight.

    """

    def __init__(
        self,
        descriptor: ConfigDescriptor,
        client: ItemStoreClient,
        notifier: Notifier,
        refresh_items: RefreshItems,
    ) -> None:
        self.descriptor = descriptor
        self.snapshots: list[BackupSnapshot] = []
        self.selecting = False
        self.preview: BackupPreview | None = None
        self.restoring = False
        self._client = client
        self._notifier = notifier
        self._refresh_items = refresh_items

    @property
    def kind_id(self) -> str:
        return self.descriptor.kind_id

    def _fail(self, action: str, subject: str, exc: CcswitchError) -> OperationResult[Any]:
        message = failure_message(action, subject, exc)
        error = error_kind_of(exc)
        logger.warning("Backup action %s on %s failed: %s", action, self.kind_id, exc)
        self._notifier.error(message, self.kind_id, error)
        return OperationResult(ok=False, message=message, error=error)

    def _succeed(self, message: str, value: Any = None) -> OperationResult[Any]:
        self._notifier.success(message, self.kind_id)
        return OperationResult(ok=True, value=value, message=message)

    async def _fetch(self) -> list[BackupSnapshot]:
        self.snapshots = await self._client.list_backups(self.kind_id)
        return self.snapshots

    async def backup(self) -> OperationResult[BackupSnapshot]:
        """Snapshot the kind's external file."""
        try:
            snapshot = await self._client.backup(self.kind_id)
        except CcswitchError as e:
            return self._fail("back up", self.descriptor.display_name, e)
        self.snapshots.insert(0, snapshot)
        return self._succeed(
            f"{self.descriptor.display_name} backed up as {snapshot.filename}", snapshot
        )

    async def refresh(self) -> OperationResult[list[BackupSnapshot]]:
        """Reload the snapshot list. Posts a notice only on failure."""
        try:
            snapshots = await self._fetch()
        except CcswitchError as e:
            return self._fail("list backups of", self.descriptor.display_name, e)
        return OperationResult(ok=True, value=snapshots)

    async def open_restore(self) -> OperationResult[list[BackupSnapshot]]:
        """Refresh the snapshot list and open the restore picker."""
        result = await self.refresh()
        if result.ok:
            self.selecting = True
        return result

    def close_restore(self) -> None:
        self.selecting = False
        self.preview = None

    async def show_preview(self, filename: str) -> OperationResult[BackupPreview]:
        """Load a snapshot's content as the current preview."""
        try:
            content = await self._client.preview_backup(filename)
        except CcswitchError as e:
            return self._fail("read backup", filename, e)
        self.preview = BackupPreview(filename, content)
        return OperationResult(ok=True, value=self.preview)

    def close_preview(self) -> None:
        self.preview = None

    async def restore(self, filename: str) -> OperationResult[BackupSnapshot]:
        """Restore a snapshot into the external file, then reload records.

        On failure the picker, preview and snapshot list stay as they were.
        """
        if self.restoring:
            message = "A restore is already in progress"
            self._notifier.error(message, self.kind_id, ErrorKind.VALIDATION)
            return OperationResult(ok=False, message=message, error=ErrorKind.VALIDATION)

        self.restoring = True
        try:
            snapshot = await self._client.restore_backup(filename)
        except CcswitchError as e:
            self.restoring = False
            return self._fail("restore backup", filename, e)

        try:
            reload = await self._refresh_items()
        finally:
            self.restoring = False
        self.selecting = False
        self.preview = None
        message = f"{self.descriptor.display_name} restored from backup {filename}"
        if not reload.ok:
            message += ", but reloading records failed"
        return self._succeed(message, snapshot)

    async def delete(self, filename: str) -> OperationResult[bool]:
        """Delete a snapshot, closing its preview if it is open."""
        try:
            deleted = await self._client.delete_backup(filename)
        except CcswitchError as e:
            return self._fail("delete backup", filename, e)

        if self.preview is not None and self.preview.filename == filename:
            self.preview = None
        try:
            await self._fetch()
        except CcswitchError as e:
            logger.warning("Could not refresh backups after deleting %s: %s", filename, e)
            self.snapshots = [s for s in self.snapshots if s.filename != filename]

        if not deleted:
            message = f"Backup {filename} was not found"
            self._notifier.error(message, self.kind_id, ErrorKind.NOT_FOUND)
            return OperationResult(
                ok=False, value=False, message=message, error=ErrorKind.NOT_FOUND
            )
        return self._succeed(f"Backup {filename} deleted", True)
