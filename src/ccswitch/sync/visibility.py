"""Per-record secret visibility toggles, owned by the workspace."""

from __future__ import annotations

from ccswitch.sync.notifications import EventBus

__all__ = ["VISIBILITY_RESET", "VisibilityState"]

VISIBILITY_RESET = "visibility_reset"


class VisibilityState:
    """Which records currently show their secret fields unmasked.

    Hiding everything is a ``visibility_reset`` event on the bus, so any
    component that mirrors the toggles can clear its own copy.
    """

    def __init__(self, events: EventBus) -> None:
        self._events = events
        self._revealed: set[tuple[str, str]] = set()

    def is_revealed(self, kind_id: str, record_id: str) -> bool:
        return (kind_id, record_id) in self._revealed

    def toggle(self, kind_id: str, record_id: str) -> bool:
        """Flip one record's visibility. Returns the new state."""
        key = (kind_id, record_id)
        if key in self._revealed:
            self._revealed.discard(key)
            return False
        self._revealed.add(key)
        return True

    def reset_all(self) -> None:
        self._revealed.clear()
        self._events.publish(VISIBILITY_RESET)
