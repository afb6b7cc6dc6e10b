"""Record and backup models shared by the store, sync and presentation layers."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["BackupSnapshot", "ConfigRecord"]


class ConfigRecord(BaseModel):
    """One named configuration record of a config kind.

    Attributes:
        id: Opaque, store-assigned identifier (unique within the kind).
        name: Non-empty name, unique per kind (enforced by the store).
        data: Kind-specific payload.
        description: Optional free text.
        created_at: RFC 3339 creation time.
        updated_at: RFC 3339 time of the last update.

    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)
    description: str | None = None
    created_at: str
    updated_at: str


class BackupSnapshot(BaseModel):
    """Immutable snapshot of one kind's external file.

    Attributes:
        filename: Time-derived unique name, e.g. ``claude-code_20260105_09_07.json``.
        kind_id: Config kind the snapshot was taken for.
        path: Virtual location of the snapshot (``database://<filename>``).
        size_bytes: Size of the captured content.
        created_at: RFC 3339 creation time.

    """

    model_config = ConfigDict(frozen=True)

    filename: str
    kind_id: str
    path: str
    size_bytes: int = Field(..., ge=0)
    created_at: str
