"""Collaborator interfaces consumed by the sync engine.

Implementations only need to match these shapes; tests substitute fakes.
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ccswitch.store.models import BackupSnapshot

__all__ = ["BackupStore", "ItemStore", "KeyValueStore"]


@runtime_checkable
class ItemStore(Protocol):
    """Durable record store dispatching on per-kind command names.

    Commands and their parameters:
        create: name, data, description -> record dict
        list: (none) -> list of record dicts, store order
        update: id, name?, data?, description? -> record dict
        delete: id -> bool
        set_active: id, active -> bool
    """

    async def call(self, command: str, **params: Any) -> Any: ...


@runtime_checkable
class BackupStore(Protocol):
    """Store of external file snapshots keyed by filename."""

    async def snapshot(self, kind_id: str, filename: str, path: Path) -> BackupSnapshot: ...

    async def get(self, filename: str) -> BackupSnapshot: ...

    async def list_backups(self, kind_id: str | None = None) -> list[BackupSnapshot]: ...

    async def preview(self, filename: str) -> str: ...

    async def restore(self, filename: str, path: Path) -> None: ...

    async def delete(self, filename: str) -> bool: ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Local synchronous key-value persistence."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...
