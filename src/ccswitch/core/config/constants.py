"""Shared constants for configuration modules.

This module provides constants used across config submodules to avoid
duplication and circular import issues.
"""

from pathlib import Path

# Environment variable relocating the data directory (and default config file)
ENV_HOME_VAR: str = "CCSWITCH_HOME"

DEFAULT_DATA_DIR: Path = Path.home() / ".ccswitch"
GLOBAL_CONFIG_NAME: str = "config.yaml"
GLOBAL_CONFIG_PATH: Path = DEFAULT_DATA_DIR / GLOBAL_CONFIG_NAME
DATABASE_NAME: str = "ccswitch.db"
STATE_FILE_NAME: str = "state.json"

MAX_CONFIG_SIZE: int = 1_048_576  # 1MB - protection against YAML bombs

# Bounded wait for list() calls against the item store, in seconds
DEFAULT_LIST_TIMEOUT: float = 5.0
