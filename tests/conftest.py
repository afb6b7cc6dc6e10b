"""Pytest configuration and fixtures for ccswitch tests."""

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest

from ccswitch.registry import ConfigDescriptor, DescriptorRegistry
from ccswitch.workspace import Workspace
from tests.fakes import (
    FakeBackupStore,
    FakeItemStore,
    MemoryKeyValueStore,
    RecordingHook,
    make_token_kind,
)


@pytest.fixture(autouse=True)
def reset_settings_singleton() -> Iterator[None]:
    """Reset the settings singleton before and after each test."""
    from ccswitch.core.config import _reset_settings

    _reset_settings()
    yield
    _reset_settings()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and CCSWITCH_HOME into tmp_path.

    Built-in kinds write below ``~``; no test may touch the real home.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("CCSWITCH_HOME", str(home / ".ccswitch"))
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    """External file of the test token kind (not created)."""
    return tmp_path / "external" / "settings.json"


@pytest.fixture
def hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def token_kind(token_file: Path, hook: RecordingHook) -> ConfigDescriptor:
    return make_token_kind(token_file, hook)


@pytest.fixture
def registry(token_kind: ConfigDescriptor) -> DescriptorRegistry:
    registry = DescriptorRegistry([token_kind])
    registry.freeze()
    return registry


@pytest.fixture
def item_store(registry: DescriptorRegistry) -> FakeItemStore:
    return FakeItemStore(registry)


@pytest.fixture
def backup_store() -> FakeBackupStore:
    return FakeBackupStore()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def workspace(
    registry: DescriptorRegistry,
    item_store: FakeItemStore,
    backup_store: FakeBackupStore,
    kv: MemoryKeyValueStore,
) -> Workspace:
    """Workspace over in-memory fakes with a fixed clock."""
    return Workspace(
        registry,
        item_store,
        backup_store,
        kv,
        list_timeout=1.0,
        clock=lambda: datetime(2026, 1, 5, 9, 7),
    )
