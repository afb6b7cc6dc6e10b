"""External configuration file reading and writing.

ExternalFileIO is the reader/writer collaborator used by reconciliation and
backup restore. The ``write_*`` functions are the activation writers of the
built-in kinds: each one merges a record's data into the existing JSON file,
leaving unrelated fields untouched.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ccswitch.core.exceptions import ExternalFileError
from ccswitch.core.io import atomic_write

logger = logging.getLogger(__name__)

__all__ = [
    "CLAUDE_SETTINGS_TEMPLATE",
    "ExternalFileIO",
    "write_claude_settings",
    "write_environment_file",
    "write_router_file",
]

# Starting point when the Claude settings file does not exist yet
CLAUDE_SETTINGS_TEMPLATE: dict[str, Any] = {
    "env": {
        "ANTHROPIC_API_KEY": "",
        "ANTHROPIC_AUTH_TOKEN": "",
        "ANTHROPIC_BASE_URL": "https://api.anthropic.com",
        "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC": 1,
    },
    "permissions": {"allow": [], "deny": []},
    "apiKeyHelper": "echo 'your-api-key-here'",
}

TOKEN_KEYS: tuple[str, ...] = ("ANTHROPIC_API_KEY", "ANTHROPIC_AUTH_TOKEN")

# Root field of the environment file naming the variable ccswitch wrote last
MANAGED_KEY_FIELD = "managed_key"


class ExternalFileIO:
    """Plain-text reader/writer for external configuration files."""

    def read(self, path: Path) -> str:
        """Return file content, or an empty string when the file is missing.

        Raises:
            ExternalFileError: If the file exists but cannot be read.

        """
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise ExternalFileError(f"Cannot read {path}: {e}", str(path)) from e

    def write(self, path: Path, text: str) -> None:
        """Atomically replace the file content, creating parent directories.

        Raises:
            ExternalFileError: If the write fails.

        """
        try:
            atomic_write(path, text)
        except OSError as e:
            raise ExternalFileError(f"Cannot write {path}: {e}", str(path)) from e
        logger.debug("Wrote %d bytes to %s", len(text), path)


def _load_json_object(path: Path, default: Mapping[str, Any]) -> dict[str, Any]:
    """Load an existing JSON object, or deep-copy ``default`` for a missing file.

    Raises:
        ExternalFileError: If the file exists but is not a JSON object.

    """
    text = ExternalFileIO().read(path)
    if not text.strip():
        return json.loads(json.dumps(default))
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExternalFileError(f"Failed to parse {path}: {e}", str(path)) from e
    if not isinstance(parsed, dict):
        raise ExternalFileError(
            f"{path} must contain a JSON object, got {type(parsed).__name__}", str(path)
        )
    return parsed


def _dump(path: Path, obj: Mapping[str, Any]) -> None:
    ExternalFileIO().write(path, json.dumps(obj, indent=2, ensure_ascii=False) + "\n")


def write_claude_settings(data: Mapping[str, Any], path: Path) -> None:
    """Project an API credential record into a Claude settings file.

    Both token keys under ``env`` get the token (removed for an empty token),
    ``ANTHROPIC_BASE_URL`` is set when non-empty, nonessential traffic stays
    disabled, ``apiKeyHelper`` echoes the token and ``permissions`` always
    holds ``allow``/``deny`` lists.

    Args:
        data: Record data with ``anthropic_auth_token`` and optional
            ``anthropic_base_url``.
        path: Settings file path.

    """
    token = str(data.get("anthropic_auth_token") or "")
    base_url = data.get("anthropic_base_url") or ""

    settings = _load_json_object(path, CLAUDE_SETTINGS_TEMPLATE)

    env = settings.get("env")
    if not isinstance(env, dict):
        env = {}
        settings["env"] = env
    for key in TOKEN_KEYS:
        if token:
            env[key] = token
        else:
            env.pop(key, None)
    if base_url:
        env["ANTHROPIC_BASE_URL"] = base_url
    env["CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC"] = 1

    settings.pop("api_key_helper", None)  # legacy field name
    if token:
        settings["apiKeyHelper"] = f"echo '{token}'"
    else:
        settings.pop("apiKeyHelper", None)

    permissions = settings.get("permissions")
    if not isinstance(permissions, dict):
        permissions = {}
        settings["permissions"] = permissions
    for key in ("allow", "deny"):
        if not isinstance(permissions.get(key), list):
            permissions[key] = []

    _dump(path, settings)
    logger.info("Updated Claude settings at %s", path)


def write_environment_file(data: Mapping[str, Any], path: Path) -> None:
    """Project an environment variable record into the ``env`` object of a file.

    The variable written is remembered under ``managed_key`` and removed by
    the next write, so the file holds only the active record's variable next
    to any hand-written ones. An empty key (the default payload) just removes
    the managed variable.
    """
    settings = _load_json_object(path, {"env": {}})
    env = settings.get("env")
    if not isinstance(env, dict):
        env = {}
        settings["env"] = env

    key = str(data.get("key") or "")
    previous = settings.pop(MANAGED_KEY_FIELD, None)
    if isinstance(previous, str) and previous != key:
        env.pop(previous, None)

    if key:
        env[key] = str(data.get("value") or "")
        settings[MANAGED_KEY_FIELD] = key
        settings["scope"] = data.get("scope", "global")

    _dump(path, settings)
    logger.info("Updated environment file at %s", path)


def write_router_file(data: Mapping[str, Any], path: Path) -> None:
    """Project a route record into the ``route`` object of a router file."""
    settings = _load_json_object(path, {})
    settings["route"] = {
        "path": data.get("path", ""),
        "method": data.get("method", "GET"),
        "handler": data.get("handler", ""),
        "middleware": list(data.get("middleware") or []),
        "auth_required": bool(data.get("auth_required", False)),
    }
    _dump(path, settings)
    logger.info("Updated router file at %s", path)
