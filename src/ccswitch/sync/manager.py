"""Per-kind action layer.

ConfigManager is what presentation surfaces (CLI, HTTP API) talk to. It
holds the read-through record cache of one kind, runs the tracker and the
reconciliation engine after each applied list(), and projects the active
record into the external file through the kind's activation hook.

Every public action returns an OperationResult and reports through the
notifier; no exception crosses this surface. load() and read_file() post a
notice only on failure, every other action posts exactly one.

Ordering of list() results: each load carries a sequence number. A result
whose number is not the latest issued is handed back to its caller but
neither applied to the cache nor reconciled. After close(), late results are
ignored entirely.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from anyio import to_thread

from ccswitch.core.exceptions import (
    CcswitchError,
    ErrorKind,
    ExternalFileError,
    RecordNotFoundError,
    RecordValidationError,
    StateStoreError,
)
from ccswitch.files import ExternalFileIO
from ccswitch.registry import Capability, ConfigDescriptor
from ccswitch.store.client import ItemStoreClient
from ccswitch.store.models import ConfigRecord
from ccswitch.sync.backups import BackupLifecycle
from ccswitch.sync.notifications import Notifier
from ccswitch.sync.reconcile import ReconcileOutcome, ReconciliationEngine
from ccswitch.sync.results import OperationResult, error_kind_of, failure_message
from ccswitch.sync.selection import ActiveSelectionTracker

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager", "KindState"]


@dataclass
class KindState:
    """Presentation state of one kind.

    Attributes:
        records: Cached records in store order.
        loading: Whether the latest list() is still in flight.
        error: ErrorKind of the last failed list(), if any.
        reconcile: Outcome of the last reconciliation run.

    """

    records: list[ConfigRecord] = field(default_factory=list)
    loading: bool = False
    error: ErrorKind | None = None
    reconcile: ReconcileOutcome | None = None


class ConfigManager:
    """Actions and cached state for one config kind.

    Attributes:
        descriptor: The kind's descriptor.
        state: Cached records and load state.
        backups: The kind's Backup Lifecycle Manager.

    """

    def __init__(
        self,
        descriptor: ConfigDescriptor,
        client: ItemStoreClient,
        tracker: ActiveSelectionTracker,
        engine: ReconciliationEngine,
        notifier: Notifier,
        files: ExternalFileIO | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.state = KindState()
        self._client = client
        self._tracker = tracker
        self._engine = engine
        self._notifier = notifier
        self._files = files or ExternalFileIO()
        self._sequence = 0
        self._closed = False
        self.backups = BackupLifecycle(descriptor, client, notifier, self.load)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def kind_id(self) -> str:
        return self.descriptor.kind_id

    @property
    def active_id(self) -> str | None:
        return self._tracker.get(self.kind_id)

    @property
    def file_path(self) -> Path | None:
        return self._client.file_path(self.kind_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def find(self, record_id: str) -> ConfigRecord | None:
        return next((r for r in self.state.records if r.id == record_id), None)

    def active_record(self) -> ConfigRecord | None:
        active_id = self.active_id
        return self.find(active_id) if active_id else None

    def close(self) -> None:
        """Dispose the manager; results of calls still in flight are ignored."""
        self._closed = True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fail(
        self,
        action: str,
        exc: CcswitchError,
        value: Any = None,
        subject: str | None = None,
    ) -> OperationResult[Any]:
        message = failure_message(action, subject or self.descriptor.display_name, exc)
        error = error_kind_of(exc)
        if error is ErrorKind.STORE:
            logger.warning("%s %s failed: %s", action, self.kind_id, exc, exc_info=True)
        else:
            logger.info("%s %s failed: %s", action, self.kind_id, exc)
        if not self._closed:
            self._notifier.error(message, self.kind_id, error)
        return OperationResult(ok=False, value=value, message=message, error=error)

    def _succeed(self, message: str, value: Any = None) -> OperationResult[Any]:
        if not self._closed:
            self._notifier.success(message, self.kind_id)
        return OperationResult(ok=True, value=value, message=message)

    def _is_current(self, sequence: int) -> bool:
        return not self._closed and sequence == self._sequence

    def _replace_cached(self, record: ConfigRecord) -> None:
        for index, cached in enumerate(self.state.records):
            if cached.id == record.id:
                self.state.records[index] = record
                return
        self.state.records.append(record)

    async def _project_data(self, data: Mapping[str, Any]) -> None:
        """Project data into the external file through the activation hook."""
        hook = self.descriptor.on_activate
        path = self.file_path
        if hook is None or path is None:
            return
        try:
            await to_thread.run_sync(hook, data, path)
        except OSError as e:
            raise ExternalFileError(f"Cannot write {path}: {e}", str(path)) from e

    async def _activate(self, record: ConfigRecord) -> list[str]:
        """Point the tracker at a record, inform the store, write the file.

        The local pointer is written first and never rolled back.

        Returns:
            Problems encountered after the pointer was set (empty on success).

        Raises:
            StateStoreError: If the pointer cannot be saved; nothing else is
                attempted then.

        """
        self._tracker.set(self.kind_id, record.id)
        problems: list[str] = []
        if self.descriptor.supports(Capability.SET_ACTIVE):
            try:
                await self._client.set_active(self.kind_id, record.id, True)
            except CcswitchError as e:
                logger.warning("Store did not accept active %s %s: %s", self.kind_id, record.id, e)
                problems.append(f"store not updated ({e})")
        try:
            await self._project_data(record.data)
        except CcswitchError as e:
            logger.warning("Activation write for %s failed: %s", self.kind_id, e)
            problems.append(f"file not written ({e})")
        return problems

    async def _activate_reporting(self, record: ConfigRecord) -> list[str]:
        try:
            return await self._activate(record)
        except StateStoreError as e:
            logger.warning("Cannot save active %s pointer: %s", self.kind_id, e)
            return [f"active selection not saved ({e})"]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def load(self) -> OperationResult[list[ConfigRecord]]:
        """List records, prune the tracker and reconcile with the external file."""
        self._sequence += 1
        sequence = self._sequence
        self.state.loading = True

        result = await self._client.list(self.kind_id)

        if not self._is_current(sequence):
            logger.debug("Discarding stale %s list result #%d", self.kind_id, sequence)
            return OperationResult(
                ok=result.ok,
                value=result.records,
                error=result.error.kind if result.error else None,
            )

        self.state.loading = False
        self.state.records = list(result.records)
        if result.error is not None:
            self.state.error = result.error.kind
            return self._fail("load", result.error, value=[])

        self.state.error = None
        try:
            self._tracker.prune(self.kind_id, self.state.records)
            await self._reconcile(sequence)
        except StateStoreError as e:
            return self._fail("sync", e, value=list(self.state.records))
        return OperationResult(ok=True, value=list(self.state.records))

    async def _reconcile(self, sequence: int) -> None:
        marker = self.descriptor.marker
        path = self.file_path
        if marker is None or path is None or not self.descriptor.supports(Capability.RECONCILE):
            self.state.reconcile = ReconcileOutcome.NOT_APPLICABLE
            return
        probe = await to_thread.run_sync(self._engine.probe, path, marker)
        if not self._is_current(sequence):
            logger.debug("Skipping reconciliation of stale %s result #%d", self.kind_id, sequence)
            return
        self.state.reconcile = self._engine.apply(self.descriptor, probe, self.state.records)

    async def create(
        self,
        name: str,
        data: Mapping[str, Any] | None = None,
        description: str | None = None,
        *,
        activate: bool = False,
    ) -> OperationResult[ConfigRecord]:
        """Create a record, optionally making it the active one."""
        payload = self.descriptor.new_data() if data is None else data
        try:
            record = await self._client.create(self.kind_id, name, payload, description)
        except CcswitchError as e:
            return self._fail("create", e)

        self._replace_cached(record)
        message = f"{self.descriptor.display_name} '{record.name}' created"
        if activate:
            problems = await self._activate_reporting(record)
            if problems:
                return self._partial(f"{message} but activation failed", problems, record)
            message += " and activated"
        return self._succeed(message, record)

    async def update(
        self,
        record_id: str,
        *,
        name: str | None = None,
        data: Mapping[str, Any] | None = None,
        description: str | None = None,
        activate: bool = False,
    ) -> OperationResult[ConfigRecord]:
        """Partially update a record.

        When the record is (or becomes, with ``activate``) the active one, its
        new data is written to the external file.
        """
        try:
            record = await self._client.update(
                self.kind_id, record_id, name=name, data=data, description=description
            )
        except CcswitchError as e:
            return self._fail("update", e)

        self._replace_cached(record)
        message = f"{self.descriptor.display_name} '{record.name}' updated"
        problems: list[str] = []
        if activate and self.active_id != record.id:
            problems = await self._activate_reporting(record)
        elif self.active_id == record.id:
            try:
                await self._project_data(record.data)
            except CcswitchError as e:
                problems.append(f"file not written ({e})")
        if problems:
            message += " but syncing the active config failed"
            return self._partial(message, problems, record)
        return self._succeed(message, record)

    async def delete(self, record_id: str) -> OperationResult[bool]:
        """Delete a record; an active pointer to it is cleared."""
        try:
            deleted = await self._client.delete(self.kind_id, record_id)
        except CcswitchError as e:
            return self._fail("delete", e)

        self.state.records = [r for r in self.state.records if r.id != record_id]
        problems: list[str] = []
        if self.active_id == record_id:
            try:
                self._tracker.clear(self.kind_id)
            except StateStoreError as e:
                problems.append(f"active selection not cleared ({e})")
        if not deleted:
            return self._fail(
                "delete",
                RecordNotFoundError(
                    f"{self.descriptor.display_name} {record_id} was already deleted"
                ),
                value=False,
            )
        if problems:
            return self._partial(f"{self.descriptor.display_name} deleted", problems, True)
        return self._succeed(f"{self.descriptor.display_name} deleted", True)

    async def set_active(self, record_id: str | None) -> OperationResult[str | None]:
        """Activate a cached record, or unset the kind with None.

        Unsetting writes the kind's default data to the external file so it
        always reflects a deterministic state.
        """
        display = self.descriptor.display_name
        if record_id is None:
            try:
                self._tracker.clear(self.kind_id)
            except StateStoreError as e:
                return self._fail("deactivate", e)
            try:
                await self._project_data(self.descriptor.new_data())
            except CcswitchError as e:
                return self._partial(f"{display} deactivated", [f"file not written ({e})"], None)
            return self._succeed(f"{display} deactivated", None)

        record = self.find(record_id)
        if record is None:
            return self._fail(
                "activate", RecordNotFoundError(f"{display} {record_id} not found")
            )
        try:
            problems = await self._activate(record)
        except StateStoreError as e:
            return self._fail("activate", e)
        if problems:
            return self._partial(f"'{record.name}' activated", problems, record.id)
        return self._succeed(f"'{record.name}' is now the active {display}", record.id)

    async def toggle_active(self, record_id: str) -> OperationResult[str | None]:
        """Deactivate the record when it is active, activate it otherwise."""
        if self.active_id == record_id:
            return await self.set_active(None)
        return await self.set_active(record_id)

    async def read_file(self) -> OperationResult[str]:
        """Return the raw text of the external file ("" when it does not exist).

        Like load(), this posts a notice only on failure.
        """
        subject = f"the {self.descriptor.display_name} file"
        path = self.file_path
        if path is None:
            return self._fail(
                "read", RecordValidationError(f"{self.descriptor.display_name} has no file")
            )
        try:
            text = await to_thread.run_sync(self._files.read, path)
        except CcswitchError as e:
            return self._fail("read", e, subject=subject)
        return OperationResult(ok=True, value=text)

    async def write_file(self, text: str) -> OperationResult[Path]:
        """Replace the external file with hand-edited content, then reload.

        The text must be a JSON object. It is written atomically and load()
        runs afterwards, so an edited marker moves the active pointer.
        """
        display = self.descriptor.display_name
        subject = f"the {display} file"
        path = self.file_path
        if path is None:
            return self._fail("save", RecordValidationError(f"{display} has no file"))
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            return self._fail(
                "save", RecordValidationError(f"{display} file is not valid JSON: {e}")
            )
        if not isinstance(parsed, dict):
            return self._fail(
                "save", RecordValidationError(f"{display} file must hold a JSON object")
            )

        try:
            await to_thread.run_sync(self._files.write, path, text)
        except CcswitchError as e:
            return self._fail("save", e, subject=subject)

        reload = await self.load()
        message = f"{display} file saved"
        if not reload.ok:
            message += ", but reloading records failed"
        return self._succeed(message, path)

    def _partial(self, message: str, problems: list[str], value: Any) -> OperationResult[Any]:
        """Report an action whose main step succeeded but a follow-up did not."""
        text = f"{message}: {'; '.join(problems)}"
        if not self._closed:
            self._notifier.error(text, self.kind_id, ErrorKind.STORE)
        return OperationResult(ok=False, value=value, message=text, error=ErrorKind.STORE)
