"""Tests for the Reconciliation Engine.

Covers:
- Marker search order (root, env, helper; file keys in declared order)
- Correction, idempotence and the first-match rule
- Missing, unreadable and unparseable files leaving the tracker alone
- The engine never writing the external file
"""

import json
from pathlib import Path

import pytest

from ccswitch.core.exceptions import ExternalFileError
from ccswitch.files import ExternalFileIO
from ccswitch.registry import ConfigDescriptor, MarkerSpec
from ccswitch.store.models import ConfigRecord
from ccswitch.sync import (
    ActiveSelectionTracker,
    ReconcileOutcome,
    ReconciliationEngine,
    find_marker,
)
from tests.fakes import TIMESTAMP, MemoryKeyValueStore, make_token_kind

KEYS = ("API_TOKEN", "TOKEN")


def _record(record_id: str, token: str) -> ConfigRecord:
    return ConfigRecord(
        id=record_id,
        name=f"name-{record_id}",
        data={"token": token},
        created_at=TIMESTAMP,
        updated_at=TIMESTAMP,
    )


class _FailingReader:
    def read(self, path: Path) -> str:
        raise ExternalFileError("permission denied", str(path))


@pytest.fixture
def tracker() -> ActiveSelectionTracker:
    return ActiveSelectionTracker(MemoryKeyValueStore())


@pytest.fixture
def engine(tracker: ActiveSelectionTracker) -> ReconciliationEngine:
    return ReconciliationEngine(tracker, ExternalFileIO())


@pytest.fixture
def kind(token_file: Path) -> ConfigDescriptor:
    return make_token_kind(token_file)


def _write(path: Path, content: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content if isinstance(content, str) else json.dumps(content), encoding="utf-8")


# =============================================================================
# find_marker
# =============================================================================


class TestFindMarker:
    """Deterministic search order for the marker value."""

    def test_root_location(self) -> None:
        assert find_marker({"API_TOKEN": "a"}, KEYS) == ("root", "a")

    def test_env_location(self) -> None:
        assert find_marker({"env": {"TOKEN": "b"}}, KEYS) == ("env", "b")

    def test_helper_location(self) -> None:
        assert find_marker({"helper": {"API_TOKEN": "c"}}, KEYS) == ("helper", "c")

    def test_root_beats_env(self) -> None:
        content = {"TOKEN": "root", "env": {"API_TOKEN": "env"}}
        assert find_marker(content, KEYS) == ("root", "root")

    def test_env_beats_helper(self) -> None:
        content = {"helper": {"API_TOKEN": "h"}, "env": {"TOKEN": "e"}}
        assert find_marker(content, KEYS) == ("env", "e")

    def test_key_order_within_location(self) -> None:
        content = {"env": {"TOKEN": "second", "API_TOKEN": "first"}}
        assert find_marker(content, KEYS) == ("env", "first")

    def test_empty_value_falls_through(self) -> None:
        content = {"env": {"API_TOKEN": "", "TOKEN": "next"}}
        assert find_marker(content, KEYS) == ("env", "next")

    def test_empty_root_falls_through_to_env(self) -> None:
        content = {"API_TOKEN": "  ", "env": {"API_TOKEN": "e"}}
        assert find_marker(content, KEYS) == ("env", "e")

    @pytest.mark.parametrize(
        "content",
        [
            {"settings": {"env": {"API_TOKEN": "deep"}}},
            {"providers": [{"API_TOKEN": "listed"}]},
            {"env": {"nested": {"API_TOKEN": "x"}}},
            {"API_TOKEN": 123},
            ["API_TOKEN"],
            "API_TOKEN",
        ],
    )
    def test_other_nestings_do_not_match(self, content: object) -> None:
        assert find_marker(content, KEYS) is None


# =============================================================================
# ReconciliationEngine
# =============================================================================


class TestReconcile:
    def test_corrects_stale_pointer(
        self,
        engine: ReconciliationEngine,
        tracker: ActiveSelectionTracker,
        kind: ConfigDescriptor,
        token_file: Path,
    ) -> None:
        """The file says B is active while the tracker says A."""
        records = [_record("a", "tok-a"), _record("b", "tok-b")]
        tracker.set("token", "a")
        _write(token_file, {"env": {"API_TOKEN": "tok-b"}})

        outcome = engine.reconcile(kind, records, token_file)

        assert outcome is ReconcileOutcome.CORRECTED
        assert tracker.get("token") == "b"

    def test_idempotent(
        self,
        engine: ReconciliationEngine,
        tracker: ActiveSelectionTracker,
        kind: ConfigDescriptor,
        token_file: Path,
    ) -> None:
        records = [_record("a", "tok-a")]
        _write(token_file, {"env": {"API_TOKEN": "tok-a"}})

        assert engine.reconcile(kind, records, token_file) is ReconcileOutcome.CORRECTED
        assert engine.reconcile(kind, records, token_file) is ReconcileOutcome.IN_SYNC
        assert tracker.get("token") == "a"

    def test_first_matching_record_wins(
        self,
        engine: ReconciliationEngine,
        tracker: ActiveSelectionTracker,
        kind: ConfigDescriptor,
        token_file: Path,
    ) -> None:
        records = [_record("first", "same"), _record("second", "same")]
        _write(token_file, {"API_TOKEN": "same"})
        engine.reconcile(kind, records, token_file)
        assert tracker.get("token") == "first"

    def test_no_match_leaves_pointer(
        self,
        engine: ReconciliationEngine,
        tracker: ActiveSelectionTracker,
        kind: ConfigDescriptor,
        token_file: Path,
    ) -> None:
        tracker.set("token", "a")
        _write(token_file, {"env": {"API_TOKEN": "unknown"}})
        outcome = engine.reconcile(kind, [_record("a", "tok-a")], token_file)
        assert outcome is ReconcileOutcome.NO_MATCH
        assert tracker.get("token") == "a"

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            (None, ReconcileOutcome.FILE_MISSING),
            ("", ReconcileOutcome.FILE_MISSING),
            ("{not json", ReconcileOutcome.UNPARSEABLE),
            ({"model": "opus"}, ReconcileOutcome.NO_MARKER),
        ],
    )
    def test_undecidable_files_leave_pointer(
        self,
        engine: ReconciliationEngine,
        tracker: ActiveSelectionTracker,
        kind: ConfigDescriptor,
        token_file: Path,
        content: object,
        expected: ReconcileOutcome,
    ) -> None:
        tracker.set("token", "a")
        if content is not None:
            _write(token_file, content)
        outcome = engine.reconcile(kind, [_record("a", "tok-a"), _record("b", "tok-b")], token_file)
        assert outcome is expected
        assert tracker.get("token") == "a"

    def test_unreadable_file(
        self, tracker: ActiveSelectionTracker, kind: ConfigDescriptor, token_file: Path
    ) -> None:
        tracker.set("token", "a")
        engine = ReconciliationEngine(tracker, _FailingReader())
        outcome = engine.reconcile(kind, [_record("b", "tok-b")], token_file)
        assert outcome is ReconcileOutcome.UNREADABLE
        assert tracker.get("token") == "a"

    def test_never_writes_file(
        self,
        engine: ReconciliationEngine,
        kind: ConfigDescriptor,
        token_file: Path,
    ) -> None:
        original = '{"env": {"API_TOKEN": "tok-b"}, "extra": true}'
        _write(token_file, original)
        mtime = token_file.stat().st_mtime_ns
        engine.reconcile(kind, [_record("b", "tok-b")], token_file)
        assert token_file.read_text(encoding="utf-8") == original
        assert token_file.stat().st_mtime_ns == mtime
        assert [p.name for p in token_file.parent.iterdir()] == ["settings.json"]

    def test_not_applicable_without_marker(
        self, engine: ReconciliationEngine, token_file: Path
    ) -> None:
        plain = ConfigDescriptor(
            kind_id="plain",
            display_name="Plain",
            endpoints=make_token_kind(token_file, kind_id="plain").endpoints,
            external_file_path=str(token_file),
        )
        assert engine.reconcile(plain, [], token_file) is ReconcileOutcome.NOT_APPLICABLE
        assert engine.reconcile(plain, [], None) is ReconcileOutcome.NOT_APPLICABLE

    def test_probe_reports_location(self, engine: ReconciliationEngine, token_file: Path) -> None:
        _write(token_file, {"helper": {"TOKEN": "h"}})
        probe = engine.probe(token_file, MarkerSpec("token", KEYS))
        assert probe.location == "helper"
        assert probe.marker_value == "h"
        assert probe.outcome is None
