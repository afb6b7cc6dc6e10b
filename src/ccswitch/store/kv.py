"""JSON-file key-value persistence for local UI state."""

import json
import logging
from pathlib import Path

from ccswitch.core.exceptions import StateStoreError
from ccswitch.core.io import atomic_write

logger = logging.getLogger(__name__)

__all__ = ["JsonKeyValueStore"]


class JsonKeyValueStore:
    """Small string-to-string map persisted as one JSON object.

    The file is shared between processes (a running ``ccswitch serve`` and
    one-shot CLI calls), so it is re-read whenever its modification time,
    size or inode changes, and every mutation is applied to the freshest
    copy before the file is rewritten atomically. A set() is durable when it
    returns; when the write fails, StateStoreError is raised and the
    in-memory copy is left as it was.

    Attributes:
        path: Location of the JSON file.

    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, str] = {}
        self._stamp: tuple[int, int, int] | None = None

    def _fingerprint(self) -> tuple[int, int, int] | None:
        try:
            st = self.path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size, st.st_ino

    def _load(self) -> dict[str, str]:
        stamp = self._fingerprint()
        if stamp is not None and stamp == self._stamp:
            return self._data

        data: dict[str, str] = {}
        if stamp is not None:
            try:
                parsed = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            else:
                if isinstance(parsed, dict):
                    data = {str(k): str(v) for k, v in parsed.items() if v is not None}
                else:
                    logger.warning("Ignoring state file %s: not a JSON object", self.path)

        self._data = data
        self._stamp = stamp
        return data

    def _commit(self, data: dict[str, str]) -> None:
        try:
            atomic_write(self.path, json.dumps(data, indent=2, sort_keys=True) + "\n")
        except OSError as e:
            raise StateStoreError(f"Cannot save state to {self.path}: {e}", str(self.path)) from e
        self._data = data
        self._stamp = self._fingerprint()

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        current = self._load()
        if current.get(key) == value:
            return
        self._commit({**current, key: value})

    def remove(self, key: str) -> None:
        current = self._load()
        if key not in current:
            return
        self._commit({k: v for k, v in current.items() if k != key})
