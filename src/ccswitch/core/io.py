"""Shared I/O utilities for atomic file operations and path handling.

Helpers for:
- Atomic file replacement
- Tilde expansion for configured file paths
- Time-derived backup filenames with collision suffixes
- ISO timestamps for stored records
"""

import contextlib
import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

__all__ = [
    "atomic_write",
    "backup_filename",
    "expand_path",
    "utc_now_iso",
]

logger = logging.getLogger(__name__)

# Upper bound on "_N" suffixes tried before giving up on a free backup name
MAX_BACKUP_SUFFIX = 999


def expand_path(path: str | Path) -> Path:
    """Expand a leading ``~`` to the user's home directory.

    Args:
        path: Configured path, possibly starting with ``~/``.

    Returns:
        Expanded path (not resolved, symlinks untouched).

    """
    return Path(path).expanduser()


def utc_now_iso() -> str:
    """Return the current UTC time as an RFC 3339 string.

    Examples:
        >>> utc_now_iso()  # doctest: +SKIP
        '2026-10-19T08:15:42.120934+00:00'

    """
    return datetime.now(UTC).isoformat()


def backup_filename(
    kind_id: str,
    now: datetime | None = None,
    exists: Callable[[str], bool] | None = None,
) -> str:
    """Derive a backup filename from local time with minute granularity.

    Format: ``{kind}_{YYYYMMDD}_{HH}_{mm}.json``. Two backups of the same kind
    in the same minute would collide, so when ``exists`` reports the base name
    as taken a numeric suffix is appended: ``{kind}_{YYYYMMDD}_{HH}_{mm}_2.json``,
    ``_3`` and so on.

    Args:
        kind_id: Config kind identifier.
        now: Local time to use. If None, uses the current local time.
        exists: Predicate telling whether a filename is already taken.

    Returns:
        A filename not reported as taken by ``exists``.

    Raises:
        ValueError: If every suffix up to MAX_BACKUP_SUFFIX is taken.

    Examples:
        >>> backup_filename("claude-code", datetime(2026, 1, 5, 9, 7))
        'claude-code_20260105_09_07.json'

    """
    if now is None:
        now = datetime.now()
    stem = f"{kind_id}_{now:%Y%m%d}_{now:%H}_{now:%M}"
    candidate = f"{stem}.json"
    if exists is None or not exists(candidate):
        return candidate

    for suffix in range(2, MAX_BACKUP_SUFFIX + 1):
        candidate = f"{stem}_{suffix}.json"
        if not exists(candidate):
            logger.debug("Backup name %s.json taken, using %s", stem, candidate)
            return candidate

    raise ValueError(f"No free backup filename for {stem} after {MAX_BACKUP_SUFFIX} attempts")


def atomic_write(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` so readers never see a partial file.

    The data goes to a per-process sibling temp file that is fsynced and
    renamed over the target. Parent directories are created. OSError
    propagates after the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        with tmp.open("w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise
