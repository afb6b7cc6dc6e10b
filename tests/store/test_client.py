"""Tests for the Item Store Client.

Covers:
- Input validation never reaching the store
- Bounded list() returning errors instead of raising
- Failure normalization into the StoreError taxonomy
- Backup naming and restore targeting
"""

import asyncio
import time
from datetime import datetime
from pathlib import Path

import pytest

from ccswitch.core.exceptions import (
    BackendUnavailableError,
    ErrorKind,
    RecordNotFoundError,
    RecordValidationError,
    StoreError,
    StoreTimeoutError,
)
from ccswitch.kinds import default_registry
from ccswitch.registry import DescriptorRegistry
from ccswitch.store import ItemStoreClient
from tests.fakes import FakeBackupStore, FakeItemStore, make_token_kind


@pytest.fixture
def client(
    registry: DescriptorRegistry, item_store: FakeItemStore, backup_store: FakeBackupStore
) -> ItemStoreClient:
    return ItemStoreClient(
        registry,
        item_store,
        backup_store,
        list_timeout=0.2,
        clock=lambda: datetime(2026, 1, 5, 9, 7),
    )


# =============================================================================
# Records
# =============================================================================


class TestValidation:
    """Bad input is rejected locally."""

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_never_reaches_store(
        self, client: ItemStoreClient, item_store: FakeItemStore, name: str
    ) -> None:
        with pytest.raises(RecordValidationError, match="Name is required"):
            asyncio.run(client.create("token", name, {"token": "x"}))
        assert item_store.calls == []

    def test_blank_name_on_update(self, client: ItemStoreClient, item_store: FakeItemStore) -> None:
        with pytest.raises(RecordValidationError):
            asyncio.run(client.update("token", "id-1", name=" "))
        assert item_store.calls == []

    def test_name_is_trimmed(self, client: ItemStoreClient, item_store: FakeItemStore) -> None:
        record = asyncio.run(client.create("token", "  work  ", {"token": "x"}))
        assert record.name == "work"

    def test_data_model_validation(self, tmp_path: Path) -> None:
        registry = default_registry()
        store = FakeItemStore(registry)
        client = ItemStoreClient(registry, store, FakeBackupStore())
        with pytest.raises(RecordValidationError, match="anthropic_auth_token"):
            asyncio.run(client.create("claude-code", "work", {"anthropic_auth_token": ""}))
        assert store.calls == []

    def test_set_active_requires_capability(self, tmp_path: Path) -> None:
        registry = DescriptorRegistry([make_token_kind(tmp_path / "s.json", set_active=False)])
        store = FakeItemStore(registry)
        client = ItemStoreClient(registry, store, FakeBackupStore())
        with pytest.raises(RecordValidationError, match="does not track"):
            asyncio.run(client.set_active("token", "id-1", True))
        assert store.calls == []


class TestRecords:
    def test_create_then_list(self, client: ItemStoreClient) -> None:
        async def scenario():
            created = await client.create("token", "work", {"token": "t1"}, "desc")
            return created, await client.list("token")

        created, listed = asyncio.run(scenario())
        assert listed.ok
        assert listed.records == [created]
        assert created.description == "desc"

    def test_update_sends_only_given_fields(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        record_id = item_store.add("token", "work", {"token": "t1"})
        updated = asyncio.run(client.update("token", record_id, description="d"))
        assert item_store.calls[-1] == ("update_token", {"id": record_id, "description": "d"})
        assert updated.data == {"token": "t1"}

    def test_update_unknown_id(self, client: ItemStoreClient) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            asyncio.run(client.update("token", "missing", name="x"))
        assert exc_info.value.kind is ErrorKind.NOT_FOUND

    def test_delete_true_then_false(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        record_id = item_store.add("token", "work", {})

        async def scenario() -> tuple[bool, bool]:
            return await client.delete("token", record_id), await client.delete("token", record_id)

        assert asyncio.run(scenario()) == (True, False)

    def test_set_active(self, client: ItemStoreClient, item_store: FakeItemStore) -> None:
        record_id = item_store.add("token", "work", {})
        assert asyncio.run(client.set_active("token", record_id, True)) is True
        assert item_store.active["token"] == record_id


class TestListFailures:
    """list() never raises; failures come back normalized."""

    def test_timeout_returns_within_bound(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        item_store.hang.add("list_token")
        started = time.monotonic()
        result = asyncio.run(client.list("token"))
        assert time.monotonic() - started < 2
        assert not result.ok
        assert result.records == []
        assert isinstance(result.error, StoreTimeoutError)
        assert result.error.kind is ErrorKind.TIMEOUT
        assert result.error.timeout == 0.2

    def test_unreachable_store(self, client: ItemStoreClient, item_store: FakeItemStore) -> None:
        item_store.errors["list_token"] = ConnectionRefusedError("refused")
        result = asyncio.run(client.list("token"))
        assert isinstance(result.error, BackendUnavailableError)
        assert result.records == []

    def test_unexpected_exception_is_store_error(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        item_store.errors["list_token"] = RuntimeError("boom")
        result = asyncio.run(client.list("token"))
        assert type(result.error) is StoreError
        assert "boom" in str(result.error)

    def test_store_errors_pass_through(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        item_store.errors["list_token"] = BackendUnavailableError("down")
        result = asyncio.run(client.list("token"))
        assert result.error is item_store.errors["list_token"]

    def test_malformed_record(self, client: ItemStoreClient, item_store: FakeItemStore) -> None:
        item_store.records["token"].append({"id": "x"})
        result = asyncio.run(client.list("token"))
        assert isinstance(result.error, StoreError)
        assert "malformed" in str(result.error)

    def test_create_failure_normalized(
        self, client: ItemStoreClient, item_store: FakeItemStore
    ) -> None:
        item_store.errors["create_token"] = OSError("socket closed")
        with pytest.raises(BackendUnavailableError):
            asyncio.run(client.create("token", "work", {}))


# =============================================================================
# Backups
# =============================================================================


class TestBackups:
    def test_backup_uses_time_derived_name(
        self, client: ItemStoreClient, token_file: Path
    ) -> None:
        token_file.parent.mkdir(parents=True)
        token_file.write_text("{}", encoding="utf-8")
        snapshot = asyncio.run(client.backup("token"))
        assert snapshot.filename == "token_20260105_09_07.json"
        assert snapshot.kind_id == "token"

    def test_same_minute_backups_get_suffix(
        self, client: ItemStoreClient, token_file: Path
    ) -> None:
        token_file.parent.mkdir(parents=True)
        token_file.write_text("{}", encoding="utf-8")

        async def scenario() -> list[str]:
            first = await client.backup("token")
            second = await client.backup("token")
            return [first.filename, second.filename]

        assert asyncio.run(scenario()) == [
            "token_20260105_09_07.json",
            "token_20260105_09_07_2.json",
        ]

    def test_backup_missing_file(self, client: ItemStoreClient) -> None:
        with pytest.raises(RecordNotFoundError):
            asyncio.run(client.backup("token"))

    def test_restore_targets_snapshot_kind(
        self, client: ItemStoreClient, token_file: Path
    ) -> None:
        token_file.parent.mkdir(parents=True)
        token_file.write_text('{"v": 1}', encoding="utf-8")

        async def scenario():
            snapshot = await client.backup("token")
            token_file.write_text('{"v": 2}', encoding="utf-8")
            return await client.restore_backup(snapshot.filename)

        restored = asyncio.run(scenario())
        assert restored.kind_id == "token"
        assert token_file.read_text(encoding="utf-8") == '{"v": 1}'

    def test_restore_unknown_backup(self, client: ItemStoreClient) -> None:
        with pytest.raises(RecordNotFoundError):
            asyncio.run(client.restore_backup("nope.json"))

    def test_file_override(
        self, registry: DescriptorRegistry, item_store: FakeItemStore, tmp_path: Path
    ) -> None:
        client = ItemStoreClient(
            registry,
            item_store,
            FakeBackupStore(),
            file_overrides={"token": str(tmp_path / "elsewhere.json")},
        )
        assert client.file_path("token") == tmp_path / "elsewhere.json"
