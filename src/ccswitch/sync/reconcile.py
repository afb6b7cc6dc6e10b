"""Reconciliation Engine.

The external file of a kind can be edited by the user or regenerated by
another program, so it may stop reflecting the record the tracker believes
is active. After every applied list() the engine looks for the kind's
marker value inside the file and, when exactly that value belongs to a
cached record, points the tracker at it.

Search order is fixed and deterministic:

1. Structural locations: root object, then ``env``, then ``helper``.
2. Inside a location: the marker's file keys in declared order.
3. The first non-empty string wins.
4. Records are scanned in list order; the first equal value wins.

Any other nesting does not match. Missing files, unparseable content, a
missing marker or an unknown value all leave the tracker untouched; they are
reported as ReconcileOutcome values, never raised. The engine never writes
the external file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from ccswitch.core.exceptions import ExternalFileError
from ccswitch.registry import Capability, ConfigDescriptor, MarkerSpec
from ccswitch.store.models import ConfigRecord
from ccswitch.sync.selection import ActiveSelectionTracker

logger = logging.getLogger(__name__)

__all__ = [
    "MARKER_LOCATIONS",
    "ReconcileOutcome",
    "ReconciliationEngine",
    "SyncProbe",
    "find_marker",
]

# (location name, key path from the root object)
MARKER_LOCATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("root", ()),
    ("env", ("env",)),
    ("helper", ("helper",)),
)


class ReconcileOutcome(str, Enum):
    """Result of one reconciliation run."""

    NOT_APPLICABLE = "not_applicable"  # kind has no external file or marker
    FILE_MISSING = "file_missing"  # missing or empty file
    UNREADABLE = "unreadable"
    UNPARSEABLE = "unparseable"
    NO_MARKER = "no_marker"
    NO_MATCH = "no_match"
    IN_SYNC = "in_sync"
    CORRECTED = "corrected"


class FileReader(Protocol):
    def read(self, path: Path) -> str: ...


@dataclass(frozen=True)
class SyncProbe:
    """What the external file said at reconciliation time.

    Attributes:
        path: File that was read.
        location: Structural location holding the marker, or None.
        marker_value: Marker value found, or None.
        outcome: Set when the probe alone already decides the outcome
            (missing, unreadable, unparseable file, or no marker).

    """

    path: Path
    location: str | None = None
    marker_value: str | None = None
    outcome: ReconcileOutcome | None = None


def find_marker(content: Any, file_keys: Sequence[str]) -> tuple[str, str] | None:
    """Search parsed file content for a marker value.

    Returns:
        (location name, value) of the first non-empty string, or None.

    """
    for location, key_path in MARKER_LOCATIONS:
        node = content
        for key in key_path:
            node = node.get(key) if isinstance(node, Mapping) else None
        if not isinstance(node, Mapping):
            continue
        for file_key in file_keys:
            value = node.get(file_key)
            if isinstance(value, str) and value.strip():
                return location, value
    return None


class ReconciliationEngine:
    """Corrects the tracker from the external file's marker value."""

    def __init__(self, tracker: ActiveSelectionTracker, reader: FileReader) -> None:
        self._tracker = tracker
        self._reader = reader

    def probe(self, path: Path, marker: MarkerSpec) -> SyncProbe:
        """Read and parse the external file far enough to find the marker."""
        try:
            text = self._reader.read(path)
        except ExternalFileError as e:
            logger.warning("Cannot read %s for reconciliation: %s", path, e)
            return SyncProbe(path, outcome=ReconcileOutcome.UNREADABLE)

        if not text.strip():
            return SyncProbe(path, outcome=ReconcileOutcome.FILE_MISSING)

        try:
            content = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("%s is not valid JSON; skipping reconciliation", path)
            return SyncProbe(path, outcome=ReconcileOutcome.UNPARSEABLE)

        found = find_marker(content, marker.file_keys)
        if found is None:
            return SyncProbe(path, outcome=ReconcileOutcome.NO_MARKER)
        location, value = found
        return SyncProbe(path, location=location, marker_value=value)

    def apply(
        self,
        descriptor: ConfigDescriptor,
        probe: SyncProbe,
        records: Sequence[ConfigRecord],
    ) -> ReconcileOutcome:
        """Point the tracker at the record matching a probe's marker value."""
        if probe.outcome is not None:
            return probe.outcome
        if descriptor.marker is None:
            return ReconcileOutcome.NOT_APPLICABLE

        field = descriptor.marker.data_field
        match = next(
            (record for record in records if record.data.get(field) == probe.marker_value),
            None,
        )
        if match is None:
            return ReconcileOutcome.NO_MATCH

        kind_id = descriptor.kind_id
        if self._tracker.get(kind_id) == match.id:
            return ReconcileOutcome.IN_SYNC
        self._tracker.set(kind_id, match.id)
        logger.debug(
            "Reconciled active %s record to %s (marker in %s of %s)",
            kind_id,
            match.id,
            probe.location,
            probe.path,
        )
        return ReconcileOutcome.CORRECTED

    def reconcile(
        self,
        descriptor: ConfigDescriptor,
        records: Sequence[ConfigRecord],
        path: Path | None,
    ) -> ReconcileOutcome:
        """Probe the file and apply the result in one step."""
        if path is None or descriptor.marker is None or not descriptor.supports(
            Capability.RECONCILE
        ):
            return ReconcileOutcome.NOT_APPLICABLE
        return self.apply(descriptor, self.probe(path, descriptor.marker), records)
