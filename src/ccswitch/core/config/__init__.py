"""Pydantic settings and singleton access for ccswitch.

Usage:
    from ccswitch.core.config import get_settings, load_settings

    # Load settings from file (typical startup)
    load_settings()  # ~/.ccswitch/config.yaml or $CCSWITCH_HOME/config.yaml

    # Or load with overrides (tests, CLI flags)
    load_settings(overrides={"list_timeout": 2.0})

    settings = get_settings()
    print(settings.database_path)
"""

from ccswitch.core.config.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_LIST_TIMEOUT,
    ENV_HOME_VAR,
    GLOBAL_CONFIG_PATH,
    MAX_CONFIG_SIZE,
)
from ccswitch.core.config.env import (
    ENV_FILE_NAME,
    _check_env_file_permissions,
    _mask_credential,
    load_env_file,
    mask_secrets,
)
from ccswitch.core.config.loaders import (
    _deep_merge,
    _load_yaml_file,
    _reset_settings,
    get_settings,
    load_settings,
)
from ccswitch.core.config.models import Settings
from ccswitch.core.exceptions import ConfigError

__all__ = [
    "DEFAULT_DATA_DIR",
    "DEFAULT_LIST_TIMEOUT",
    "ENV_FILE_NAME",
    "ENV_HOME_VAR",
    "GLOBAL_CONFIG_PATH",
    "MAX_CONFIG_SIZE",
    "ConfigError",
    "Settings",
    "_check_env_file_permissions",
    "_deep_merge",
    "_load_yaml_file",
    "_mask_credential",
    "_reset_settings",
    "get_settings",
    "load_env_file",
    "load_settings",
    "mask_secrets",
]
