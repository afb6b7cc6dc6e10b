"""Config kind descriptors.

A descriptor is the static description of one config kind: its display
metadata, default payload, store command names and the optional lifecycle
hooks it supports. Kinds differ by which capabilities they expose, not by
subclassing.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ccswitch.core.io import expand_path

__all__ = [
    "ActivationHook",
    "Capability",
    "ConfigDescriptor",
    "Endpoints",
    "MarkerSpec",
]

# on_activate(data, path): project a record's data into the external file
ActivationHook = Callable[[Mapping[str, Any], Path], None]


class Capability(str, Enum):
    """Optional lifecycle hooks a config kind may support."""

    SET_ACTIVE = "set_active"  # store tracks the active flag too
    ON_ACTIVATE = "on_activate"  # activation writes the external file
    RECONCILE = "reconcile"  # external file can be matched back to a record


@dataclass(frozen=True)
class Endpoints:
    """Store command names for one config kind.

    The item store dispatches on these names, so two kinds never share a
    command.
    """

    create: str
    list: str
    update: str
    delete: str
    set_active: str | None = None

    def all(self) -> tuple[str, ...]:
        """Return every declared command name."""
        names = (self.create, self.list, self.update, self.delete, self.set_active)
        return tuple(name for name in names if name)


@dataclass(frozen=True)
class MarkerSpec:
    """Identifies which record an external file currently reflects.

    Attributes:
        data_field: Field of the record's ``data`` compared by value.
        file_keys: Keys that may carry the same value in the external file,
            tried in order at each structural location.

    """

    data_field: str
    file_keys: tuple[str, ...]


@dataclass(frozen=True)
class ConfigDescriptor:
    """Static description of one config kind.

    Attributes:
        kind_id: Unique identifier, also the local persistence key suffix.
        display_name: Human readable name, used for sorting and messages.
        endpoints: Store command names.
        default_data: Payload used for new records and when no record is active.
        description: One-line description.
        external_file_path: File projected from the active record (``~`` allowed).
        on_activate: Hook writing a record's data into the external file.
        marker: How to recognise the active record inside the external file.
        data_model: Optional pydantic model validating record data.
        secret_fields: Data fields masked when displayed.

    """

    kind_id: str
    display_name: str
    endpoints: Endpoints
    default_data: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""
    external_file_path: str | None = None
    on_activate: ActivationHook | None = field(default=None, compare=False)
    marker: MarkerSpec | None = None
    data_model: type[BaseModel] | None = field(default=None, compare=False)
    secret_fields: tuple[str, ...] = ()

    @property
    def capabilities(self) -> frozenset[Capability]:
        """Capability set derived from the declared hooks."""
        caps: set[Capability] = set()
        if self.endpoints.set_active:
            caps.add(Capability.SET_ACTIVE)
        if self.on_activate is not None:
            caps.add(Capability.ON_ACTIVATE)
        if self.external_file_path and self.marker is not None:
            caps.add(Capability.RECONCILE)
        return frozenset(caps)

    def supports(self, capability: Capability) -> bool:
        """Check whether this kind exposes a capability."""
        return capability in self.capabilities

    def new_data(self) -> dict[str, Any]:
        """Return a fresh deep copy of the default payload."""
        return copy.deepcopy(dict(self.default_data))

    def resolve_file_path(self, overrides: Mapping[str, str] | None = None) -> Path | None:
        """Return the expanded external file path, honoring per-kind overrides.

        Args:
            overrides: Mapping of kind id to path, typically from Settings.

        Returns:
            Expanded path, or None when this kind has no external file.

        """
        raw = (overrides or {}).get(self.kind_id) or self.external_file_path
        if not raw:
            return None
        return expand_path(raw)
