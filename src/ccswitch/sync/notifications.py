"""Notification channel and listener events.

Notifier is the uniform success/failure channel for user-facing messages
(the toast equivalent). EventBus carries broadcasts between presentation
components, such as resetting every secret visibility toggle at once.

Example:
    >>> notifier = Notifier()
    >>> seen = []
    >>> unsubscribe = notifier.subscribe(seen.append)
    >>> notifier.success("Saved")
    >>> seen[0].message
    'Saved'

"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ccswitch.core.exceptions import ErrorKind

logger = logging.getLogger(__name__)

__all__ = [
    "EventBus",
    "Notice",
    "NoticeLevel",
    "Notifier",
]

# Notices kept for late subscribers (e.g. an HTTP poll)
HISTORY_SIZE = 50


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """One user-facing message.

    Attributes:
        level: Success or error.
        message: Text shown to the user.
        kind_id: Config kind the notice refers to, if any.
        error: ErrorKind for failures.

    """

    level: NoticeLevel
    message: str
    kind_id: str | None = None
    error: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.level is NoticeLevel.SUCCESS


NoticeListener = Callable[[Notice], None]


def _unsubscriber(listeners: list[Any], listener: Any) -> Callable[[], None]:
    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe


class Notifier:
    """Fan-out of notices to registered listeners."""

    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self._listeners: list[NoticeListener] = []
        self.history: deque[Notice] = deque(maxlen=history_size)

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)
        return _unsubscriber(self._listeners, listener)

    def post(self, notice: Notice) -> None:
        self.history.append(notice)
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                logger.exception("Notice listener %r failed", listener)

    def success(self, message: str, kind_id: str | None = None) -> None:
        self.post(Notice(NoticeLevel.SUCCESS, message, kind_id))

    def error(
        self, message: str, kind_id: str | None = None, error: ErrorKind | None = None
    ) -> None:
        self.post(Notice(NoticeLevel.ERROR, message, kind_id, error or ErrorKind.STORE))


EventListener = Callable[[Any], None]


class EventBus:
    """Named-event publish/subscribe for presentation state broadcasts."""

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, event: str, listener: EventListener) -> Callable[[], None]:
        """Register a listener for an event; returns a callable that removes it."""
        listeners = self._listeners[event]
        listeners.append(listener)
        return _unsubscriber(listeners, listener)

    def publish(self, event: str, payload: Any = None) -> int:
        """Call every listener of an event. Returns how many were called."""
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", event)
        logger.debug("Published %s to %d listeners", event, len(listeners))
        return len(listeners)
