"""Transient user notifications.

Holds at most one live notification. Showing a new one clears the previous,
so errors never stack into duplicate toasts.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    LOADING = "loading"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: float = field(default_factory=time.time)


NotificationListener = Callable[[Optional[Notification]], None]


class Notifier:
    """Single-slot notifier with subscriber callbacks.

    Listeners receive the new notification, or None when it is cleared.
    """

    def __init__(self):
        self._current: Optional[Notification] = None
        self._listeners: list[NotificationListener] = []
        self.history: list[Notification] = []

    @property
    def current(self) -> Optional[Notification]:
        return self._current

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def show(self, level: NotificationLevel | str, message: str) -> Notification:
        """Replace the current notification."""
        self.clear()
        notification = Notification(level=NotificationLevel(level), message=message)
        self._current = notification
        self.history.append(notification)
        logger.debug(f"Notification [{notification.level.value}]: {message}")
        self._dispatch(notification)
        return notification

    def clear(self) -> None:
        if self._current is None:
            return
        self._current = None
        self._dispatch(None)

    def _dispatch(self, notification: Optional[Notification]) -> None:
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.warning(f"Notification listener failed: {e}")

    def success(self, message: str) -> Notification:
        return self.show(NotificationLevel.SUCCESS, message)

    def info(self, message: str) -> Notification:
        return self.show(NotificationLevel.INFO, message)

    def warning(self, message: str) -> Notification:
        return self.show(NotificationLevel.WARNING, message)

    def error(self, message: str) -> Notification:
        return self.show(NotificationLevel.ERROR, message)

    def loading(self, message: str) -> Notification:
        return self.show(NotificationLevel.LOADING, message)
