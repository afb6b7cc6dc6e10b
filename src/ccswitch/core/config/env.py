"""Environment file loading and secret masking for ccswitch."""

import logging
import stat
import sys
from collections.abc import Collection, Mapping
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_FILE_NAME: str = ".env"

# Characters of a secret left readable when masked.
MASK_PREFIX_LEN = 7
MASK = "***"


def _mask_credential(value: str | None) -> str:
    """Mask a secret for display, keeping a short prefix of long values.

    >>> _mask_credential("sk-ant-api03-secret")
    'sk-ant-***'
    """
    if not value or len(value) <= MASK_PREFIX_LEN:
        return MASK
    return f"{value[:MASK_PREFIX_LEN]}{MASK}"


def mask_secrets(data: Mapping[str, Any], secret_fields: Collection[str]) -> dict[str, Any]:
    """Copy of ``data`` with every field in ``secret_fields`` masked."""
    masked: dict[str, Any] = {}
    for key, value in data.items():
        if key in secret_fields:
            masked[key] = _mask_credential(str(value) if value else None)
        else:
            masked[key] = value
    return masked


def _check_env_file_permissions(path: Path) -> None:
    """Log a warning when group or others can access the .env file."""
    if sys.platform == "win32":
        return
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except OSError:
        return
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(
            ".env file %s has insecure permissions %03o; run: chmod 600 %s",
            path,
            mode,
            path,
        )


def load_env_file(
    directory: str | Path | None = None,
    *,
    check_permissions: bool = True,
) -> bool:
    """Load variables from ``{directory}/.env`` (cwd by default).

    Variables already set in the process environment win, so CCSWITCH_HOME
    exported in the shell beats the one in .env. Returns whether a file was
    loaded.
    """
    base = Path.cwd() if directory is None else Path(directory).expanduser()
    env_file = base / ENV_FILE_NAME
    if not env_file.is_file():
        logger.debug("No .env at %s", env_file)
        return False

    if check_permissions:
        _check_env_file_permissions(env_file)
    load_dotenv(env_file, encoding="utf-8", override=False)
    logger.debug("Loaded environment variables from %s", env_file)
    return True
