"""Settings loading functions and singleton management."""

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ccswitch.core.config.constants import (
    ENV_HOME_VAR,
    GLOBAL_CONFIG_NAME,
    GLOBAL_CONFIG_PATH,
    MAX_CONFIG_SIZE,
)
from ccswitch.core.config.env import load_env_file
from ccswitch.core.config.models import Settings
from ccswitch.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Module-level singleton for settings
_settings: Settings | None = None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, descending into nested dicts.

    Neither input is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = copy.deepcopy(value)
    return merged


def _read_limited(path: Path) -> str:
    try:
        with path.open("rb") as f:
            raw = f.read(MAX_CONFIG_SIZE + 1)
    except IsADirectoryError as e:
        raise ConfigError(f"{path} is a directory, not a settings file.") from e
    except OSError as e:
        raise ConfigError(f"Cannot read settings file {path}: {e.strerror or e}") from e
    if len(raw) > MAX_CONFIG_SIZE:
        raise ConfigError(f"Settings file {path} is larger than the 1MB limit.")
    return raw.decode("utf-8", errors="replace")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse a YAML settings file into a mapping.

    An empty file yields ``{}``. Raises ConfigError when the file cannot be
    read, exceeds MAX_CONFIG_SIZE or holds anything but a mapping.
    """
    try:
        parsed = yaml.safe_load(_read_limited(path))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        kind = type(parsed).__name__
        raise ConfigError(f"Settings file {path} must hold a YAML mapping, not a {kind}.")
    return parsed


def _default_config_path() -> tuple[Path, Path | None]:
    """Return (config path, data dir override) honoring CCSWITCH_HOME."""
    home = os.environ.get(ENV_HOME_VAR)
    if home:
        data_dir = Path(home).expanduser()
        return data_dir / GLOBAL_CONFIG_NAME, data_dir
    return GLOBAL_CONFIG_PATH, None


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from YAML and install them as the singleton.

    Resolution order (later wins): model defaults, CCSWITCH_HOME data dir,
    YAML file, ``overrides``.

    Args:
        config_path: Explicit YAML path. Must exist when given. When None,
            ``$CCSWITCH_HOME/config.yaml`` or ``~/.ccswitch/config.yaml`` is
            used if present.
        overrides: Values applied on top of the file (CLI flags, tests).

    Returns:
        The loaded Settings instance.

    Raises:
        ConfigError: If the file is unreadable or validation fails.

    """
    global _settings

    load_env_file()

    data: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        data = _load_yaml_file(path)
    else:
        path, data_dir = _default_config_path()
        if data_dir is not None:
            data["data_dir"] = str(data_dir)
        if path.is_file():
            data = _deep_merge(data, _load_yaml_file(path))
        else:
            logger.debug("No config file at %s, using defaults", path)

    if overrides:
        data = _deep_merge(data, overrides)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    _settings = settings
    logger.debug("Settings loaded: data_dir=%s", settings.data_dir)
    return settings


def get_settings() -> Settings:
    """Return the settings singleton, loading defaults on first use."""
    if _settings is None:
        return load_settings()
    return _settings


def _reset_settings() -> None:
    """Drop the settings singleton (tests only)."""
    global _settings
    _settings = None
