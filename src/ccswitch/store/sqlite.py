"""SQLite-backed item and backup store.

One ``items`` table holds the records of every config kind; each kind's
endpoint names are bound to the same generic operations at construction
time. The ``backups`` table keeps snapshots of external files.

Blocking sqlite3 work runs in worker threads via anyio. A fresh connection
is opened per operation, so the store is safe to call from any thread.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread

from ccswitch.core.exceptions import (
    BackendUnavailableError,
    RecordNotFoundError,
    StoreError,
)
from ccswitch.core.io import atomic_write, utc_now_iso
from ccswitch.registry import DescriptorRegistry
from ccswitch.store.models import BackupSnapshot

logger = logging.getLogger(__name__)

__all__ = ["SqliteStore"]

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS items (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        name TEXT NOT NULL,
        data TEXT NOT NULL,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (kind, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS backups (
        filename TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        content TEXT NOT NULL,
        size INTEGER NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
)

_ITEM_COLUMNS = "id, name, data, description, created_at, updated_at"


def _row_to_record(row: sqlite3.Row) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "data": json.loads(row["data"]),
        "description": row["description"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def _row_to_snapshot(row: sqlite3.Row) -> BackupSnapshot:
    return BackupSnapshot(
        filename=row["filename"],
        kind_id=row["kind"],
        path=f"database://{row['filename']}",
        size_bytes=row["size"],
        created_at=row["created_at"],
    )


class SqliteStore:
    """Item store and backup store over a single SQLite database.

    Attributes:
        db_path: Database file location.

    """

    def __init__(self, db_path: Path, registry: DescriptorRegistry) -> None:
        self.db_path = db_path
        self._schema_ready = False
        self._schema_lock = threading.Lock()
        self._commands: dict[str, Callable[..., Any]] = {}
        for descriptor in registry:
            kind = descriptor.kind_id
            endpoints = descriptor.endpoints
            self._commands[endpoints.create] = partial(self._create, kind)
            self._commands[endpoints.list] = partial(self._list, kind)
            self._commands[endpoints.update] = partial(self._update, kind)
            self._commands[endpoints.delete] = partial(self._delete, kind)
            if endpoints.set_active:
                self._commands[endpoints.set_active] = partial(self._set_active, kind)

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, creating the schema on first use.

        Raises:
            BackendUnavailableError: If the database cannot be opened.
            StoreError: For any other sqlite failure inside the block.

        """
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=10)
        except (OSError, sqlite3.OperationalError) as e:
            raise BackendUnavailableError(f"Cannot open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            if not self._schema_ready:
                with self._schema_lock:
                    for statement in _SCHEMA:
                        conn.execute(statement)
                    conn.commit()
                    self._schema_ready = True
            with conn:
                yield conn
        except sqlite3.IntegrityError as e:
            raise StoreError(f"Constraint violated: {e}") from e
        except sqlite3.OperationalError as e:
            if "unable to open" in str(e) or "locked" in str(e):
                raise BackendUnavailableError(f"Database unavailable: {e}") from e
            raise StoreError(f"Database error: {e}") from e
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Item store
    # ------------------------------------------------------------------

    async def call(self, command: str, **params: Any) -> Any:
        """Dispatch a store command in a worker thread.

        Raises:
            StoreError: If the command is unknown or the operation fails.

        """
        handler = self._commands.get(command)
        if handler is None:
            raise StoreError(f"Unknown store command: {command}")
        return await to_thread.run_sync(
            partial(handler, **params), abandon_on_cancel=True
        )

    def _fetch_item(self, conn: sqlite3.Connection, kind: str, item_id: str) -> sqlite3.Row:
        row = conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE kind = ? AND id = ?",
            (kind, item_id),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Record {item_id} not found")
        return row

    def _create(
        self,
        kind: str,
        name: str,
        data: dict[str, Any],
        description: str | None = None,
    ) -> dict[str, Any]:
        now = utc_now_iso()
        item_id = str(uuid.uuid4())
        with self._connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO items (id, kind, name, data, description, created_at, updated_at)"
                    " VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (item_id, kind, name, json.dumps(data), description, now, now),
                )
            except sqlite3.IntegrityError as e:
                raise StoreError(f"A record named {name!r} already exists") from e
            row = self._fetch_item(conn, kind, item_id)
        logger.debug("Created %s record %s", kind, item_id)
        return _row_to_record(row)

    def _list(self, kind: str) -> list[dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_ITEM_COLUMNS} FROM items WHERE kind = ? ORDER BY rowid",
                (kind,),
            ).fetchall()
        return [_row_to_record(row) for row in rows]

    def _update(
        self,
        kind: str,
        id: str,
        name: str | None = None,
        data: dict[str, Any] | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        with self._connect() as conn:
            current = self._fetch_item(conn, kind, id)
            new_name = current["name"] if name is None else name
            new_data = current["data"] if data is None else json.dumps(data)
            new_description = current["description"] if description is None else description
            try:
                conn.execute(
                    "UPDATE items SET name = ?, data = ?, description = ?, updated_at = ?"
                    " WHERE kind = ? AND id = ?",
                    (new_name, new_data, new_description, utc_now_iso(), kind, id),
                )
            except sqlite3.IntegrityError as e:
                raise StoreError(f"A record named {new_name!r} already exists") from e
            row = self._fetch_item(conn, kind, id)
        return _row_to_record(row)

    def _delete(self, kind: str, id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM items WHERE kind = ? AND id = ?", (kind, id))
        return cursor.rowcount > 0

    def _set_active(self, kind: str, id: str, active: bool) -> bool:
        with self._connect() as conn:
            self._fetch_item(conn, kind, id)
            if active:
                conn.execute("UPDATE items SET is_active = 0 WHERE kind = ?", (kind,))
            conn.execute(
                "UPDATE items SET is_active = ? WHERE kind = ? AND id = ?",
                (1 if active else 0, kind, id),
            )
        return True

    # ------------------------------------------------------------------
    # Backup store
    # ------------------------------------------------------------------

    def _snapshot(self, kind_id: str, filename: str, path: Path) -> BackupSnapshot:
        if not path.is_file():
            raise RecordNotFoundError(f"Config file {path} does not exist")
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

        with self._connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO backups (filename, kind, content, size, created_at)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (filename, kind_id, content, len(content.encode("utf-8")), utc_now_iso()),
                )
            except sqlite3.IntegrityError as e:
                raise StoreError(f"Backup {filename} already exists") from e
            row = conn.execute(
                "SELECT filename, kind, size, created_at FROM backups WHERE filename = ?",
                (filename,),
            ).fetchone()
        logger.info("Backed up %s to %s", path, filename)
        return _row_to_snapshot(row)

    def _get(self, filename: str) -> BackupSnapshot:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT filename, kind, size, created_at FROM backups WHERE filename = ?",
                (filename,),
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Backup {filename} does not exist")
        return _row_to_snapshot(row)

    def _list_backups(self, kind_id: str | None) -> list[BackupSnapshot]:
        query = "SELECT filename, kind, size, created_at FROM backups"
        params: tuple[str, ...] = ()
        if kind_id is not None:
            query += " WHERE kind = ?"
            params = (kind_id,)
        query += " ORDER BY created_at DESC, filename DESC"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_snapshot(row) for row in rows]

    def _preview(self, filename: str) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT content FROM backups WHERE filename = ?", (filename,)
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(f"Backup {filename} does not exist")
        content: str = row["content"]
        return content

    def _restore(self, filename: str, path: Path) -> None:
        content = self._preview(filename)
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreError(f"Backup {filename} is not valid JSON: {e}") from e
        try:
            atomic_write(path, content)
        except OSError as e:
            raise StoreError(f"Failed to restore {path}: {e}") from e
        logger.info("Restored %s from backup %s", path, filename)

    def _delete_backup(self, filename: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM backups WHERE filename = ?", (filename,))
        return cursor.rowcount > 0

    async def snapshot(self, kind_id: str, filename: str, path: Path) -> BackupSnapshot:
        return await to_thread.run_sync(self._snapshot, kind_id, filename, path)

    async def get(self, filename: str) -> BackupSnapshot:
        return await to_thread.run_sync(self._get, filename)

    async def list_backups(self, kind_id: str | None = None) -> list[BackupSnapshot]:
        return await to_thread.run_sync(self._list_backups, kind_id)

    async def preview(self, filename: str) -> str:
        return await to_thread.run_sync(self._preview, filename)

    async def restore(self, filename: str, path: Path) -> None:
        await to_thread.run_sync(self._restore, filename, path)

    async def delete(self, filename: str) -> bool:
        return await to_thread.run_sync(self._delete_backup, filename)
