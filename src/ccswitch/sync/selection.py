"""Active-Selection Tracker.

Owns the per-kind "which record is active" pointer. It is the only writer of
the persisted pointer (key ``active_{kind_id}``); presentation and
reconciliation only read it, or ask the tracker to change it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ccswitch.store.models import ConfigRecord
from ccswitch.store.protocols import KeyValueStore

logger = logging.getLogger(__name__)

__all__ = ["ActiveSelectionTracker", "selection_key"]


def selection_key(kind_id: str) -> str:
    """Return the persistence key of a kind's active pointer."""
    return f"active_{kind_id}"


class ActiveSelectionTracker:
    """Per-kind active record pointer backed by local key-value persistence.

    Writes are synchronous: when set() returns, the pointer is persisted.
    """

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage

    def get(self, kind_id: str) -> str | None:
        return self._storage.get(selection_key(kind_id)) or None

    def set(self, kind_id: str, record_id: str | None) -> None:
        """Point a kind at a record, or clear the pointer with None."""
        if record_id is None:
            self.clear(kind_id)
            return
        self._storage.set(selection_key(kind_id), record_id)
        logger.debug("Active %s record is now %s", kind_id, record_id)

    def clear(self, kind_id: str) -> None:
        self._storage.remove(selection_key(kind_id))
        logger.debug("Cleared active %s record", kind_id)

    def prune(self, kind_id: str, records: Iterable[ConfigRecord]) -> bool:
        """Clear the pointer when it references none of ``records``.

        Returns:
            True when the pointer was cleared.

        """
        active_id = self.get(kind_id)
        if active_id is None:
            return False
        if any(record.id == active_id for record in records):
            return False
        logger.info("Active %s record %s no longer exists; unsetting", kind_id, active_id)
        self.clear(kind_id)
        return True
