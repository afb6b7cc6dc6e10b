"""Pydantic settings model for ccswitch."""

from pathlib import Path
from typing import Literal, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ccswitch.core.config.constants import (
    DATABASE_NAME,
    DEFAULT_DATA_DIR,
    DEFAULT_LIST_TIMEOUT,
    STATE_FILE_NAME,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseModel):
    """Runtime settings for ccswitch.

    Attributes:
        data_dir: Directory for the database and local state.
        database: SQLite database holding records and backups. Defaults to
            ``<data_dir>/ccswitch.db``.
        state_file: JSON file persisting the active selection per kind.
            Defaults to ``<data_dir>/state.json``.
        list_timeout: Bounded wait for listing records, in seconds.
        external_files: Per-kind override of the external file path.
        log_level: Default log level when the CLI is not told otherwise.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Directory for the database and local state",
    )
    database: Path | None = Field(
        None,
        description="SQLite database path (default: <data_dir>/ccswitch.db)",
    )
    state_file: Path | None = Field(
        None,
        description="Active selection state file (default: <data_dir>/state.json)",
    )
    list_timeout: float = Field(
        default=DEFAULT_LIST_TIMEOUT,
        gt=0,
        description="Bounded wait for list() in seconds",
    )
    external_files: dict[str, str] = Field(
        default_factory=dict,
        description="Kind id -> external file path override",
    )
    log_level: LogLevel = Field(
        default="WARNING",
        description="Default log level",
    )

    @field_validator("data_dir", "database", "state_file", mode="after")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @model_validator(mode="after")
    def _fill_derived_paths(self) -> Self:
        # Frozen model: derived defaults go through object.__setattr__
        if self.database is None:
            object.__setattr__(self, "database", self.data_dir / DATABASE_NAME)
        if self.state_file is None:
            object.__setattr__(self, "state_file", self.data_dir / STATE_FILE_NAME)
        return self

    @property
    def database_path(self) -> Path:
        """Resolved database path (never None after validation)."""
        assert self.database is not None
        return self.database

    @property
    def state_path(self) -> Path:
        """Resolved state file path (never None after validation)."""
        assert self.state_file is not None
        return self.state_file
