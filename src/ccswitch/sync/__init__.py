"""Active-state synchronization: tracker, reconciliation and per-kind actions."""

from ccswitch.sync.backups import BackupLifecycle, BackupPreview
from ccswitch.sync.manager import ConfigManager, KindState
from ccswitch.sync.notifications import EventBus, Notice, NoticeLevel, Notifier
from ccswitch.sync.reconcile import (
    MARKER_LOCATIONS,
    ReconcileOutcome,
    ReconciliationEngine,
    SyncProbe,
    find_marker,
)
from ccswitch.sync.results import OperationResult
from ccswitch.sync.selection import ActiveSelectionTracker, selection_key
from ccswitch.sync.visibility import VISIBILITY_RESET, VisibilityState

__all__ = [
    "MARKER_LOCATIONS",
    "VISIBILITY_RESET",
    "ActiveSelectionTracker",
    "BackupLifecycle",
    "BackupPreview",
    "ConfigManager",
    "EventBus",
    "KindState",
    "Notice",
    "NoticeLevel",
    "Notifier",
    "OperationResult",
    "ReconcileOutcome",
    "ReconciliationEngine",
    "SyncProbe",
    "VisibilityState",
    "find_marker",
    "selection_key",
]
