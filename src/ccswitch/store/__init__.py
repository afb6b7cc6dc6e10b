"""Record persistence: models, collaborator protocols and implementations."""

from ccswitch.store.client import ItemStoreClient, ListResult
from ccswitch.store.kv import JsonKeyValueStore
from ccswitch.store.models import BackupSnapshot, ConfigRecord
from ccswitch.store.protocols import BackupStore, ItemStore, KeyValueStore
from ccswitch.store.sqlite import SqliteStore

__all__ = [
    "BackupSnapshot",
    "BackupStore",
    "ConfigRecord",
    "ItemStore",
    "ItemStoreClient",
    "JsonKeyValueStore",
    "KeyValueStore",
    "ListResult",
    "SqliteStore",
]
