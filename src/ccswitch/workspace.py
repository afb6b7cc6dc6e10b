"""Workspace: the object graph behind every presentation surface.

A Workspace owns the registry, store collaborators, client, tracker,
reconciliation engine, notification channels and one ConfigManager per
kind. Nothing here is module-global; the CLI builds one workspace per
invocation and the HTTP server one per application.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime

from ccswitch.core.config import Settings, get_settings
from ccswitch.core.config.constants import DEFAULT_LIST_TIMEOUT
from ccswitch.core.exceptions import RecordNotFoundError
from ccswitch.files import ExternalFileIO
from ccswitch.kinds import default_registry
from ccswitch.registry import ConfigDescriptor, DescriptorRegistry
from ccswitch.store import (
    BackupStore,
    ItemStore,
    ItemStoreClient,
    JsonKeyValueStore,
    KeyValueStore,
    SqliteStore,
)
from ccswitch.sync import (
    ActiveSelectionTracker,
    ConfigManager,
    EventBus,
    Notifier,
    ReconciliationEngine,
    VisibilityState,
)
from ccswitch.sync.reconcile import FileReader

logger = logging.getLogger(__name__)

__all__ = ["Workspace"]


class Workspace:
    """Registry-scoped owner of all synchronization components.

    Attributes:
        registry: Frozen descriptor registry.
        client: Item store client shared by every kind.
        tracker: Active-selection tracker (single writer of the pointer).
        files: Reader/writer of external configuration files.
        engine: Reconciliation engine.
        notifier: User-facing notice channel.
        events: Broadcast channel for presentation events.
        visibility: Secret visibility toggles.

    """

    def __init__(
        self,
        registry: DescriptorRegistry,
        store: ItemStore,
        backups: BackupStore,
        storage: KeyValueStore,
        *,
        list_timeout: float = DEFAULT_LIST_TIMEOUT,
        file_overrides: Mapping[str, str] | None = None,
        reader: FileReader | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if not registry.frozen:
            registry.freeze()
        self.registry = registry
        self.client = ItemStoreClient(
            registry,
            store,
            backups,
            list_timeout=list_timeout,
            file_overrides=file_overrides,
            clock=clock,
        )
        self.tracker = ActiveSelectionTracker(storage)
        self.files = ExternalFileIO()
        self.engine = ReconciliationEngine(self.tracker, reader or self.files)
        self.notifier = Notifier()
        self.events = EventBus()
        self.visibility = VisibilityState(self.events)
        self._managers: dict[str, ConfigManager] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        registry: DescriptorRegistry | None = None,
    ) -> Workspace:
        """Build a workspace on SQLite and a JSON state file."""
        settings = settings or get_settings()
        registry = registry or default_registry()
        sqlite = SqliteStore(settings.database_path, registry)
        logger.debug(
            "Workspace on %s (state %s)", settings.database_path, settings.state_path
        )
        return cls(
            registry,
            sqlite,
            sqlite,
            JsonKeyValueStore(settings.state_path),
            list_timeout=settings.list_timeout,
            file_overrides=settings.external_files,
        )

    def kinds(self) -> list[ConfigDescriptor]:
        """Descriptors in presentation order."""
        return self.registry.sorted_for_display()

    def manager(self, kind_id: str) -> ConfigManager:
        """Return the kind's manager, creating it on first use.

        Raises:
            UnknownKindError: If the kind is not registered.

        """
        manager = self._managers.get(kind_id)
        if manager is None or manager.closed:
            descriptor = self.registry.get(kind_id)
            manager = ConfigManager(
                descriptor,
                self.client,
                self.tracker,
                self.engine,
                self.notifier,
                files=self.files,
            )
            self._managers[kind_id] = manager
        return manager

    async def manager_for_backup(self, filename: str) -> ConfigManager:
        """Return the manager of the kind a snapshot belongs to.

        Raises:
            RecordNotFoundError: If no snapshot has this filename.
            StoreError: If the backup store cannot be listed.

        """
        for snapshot in await self.client.list_backups():
            if snapshot.filename == filename:
                return self.manager(snapshot.kind_id)
        raise RecordNotFoundError(f"Backup {filename} does not exist")

    def close(self) -> None:
        for manager in self._managers.values():
            manager.close()
        self._managers.clear()
