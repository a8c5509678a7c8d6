"""
Session notifications with duplicate suppression.

A notification whose (kind, message) pair is still in the buffer and was
posted within the dedup window is dropped. The buffer keeps only the most
recent entries; cleared or evicted entries no longer suppress anything.
"""

import itertools
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Deque, List, Optional

from loguru import logger

from .clock import Clock, utc_now
from .config import Settings, get_settings


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass
class Notification:
    """
    A message surfaced to the dashboard.

    Attributes:
        id: Unique within the notifier
        kind: success, error, info or warning
        title: Short heading
        message: Body text; with ``kind`` it forms the dedup key
        timestamp: When it was posted
        read: Whether the user has seen it
    """
    id: str
    kind: NotificationKind
    title: str
    message: str
    timestamp: datetime
    read: bool = False


DEFAULT_TITLES = {
    NotificationKind.SUCCESS: "Success",
    NotificationKind.ERROR: "Error",
    NotificationKind.INFO: "Information",
    NotificationKind.WARNING: "Warning",
}


class Notifier:
    """
    Bounded, deduplicating notification buffer for one session.
    """

    def __init__(self, settings: Optional[Settings] = None, clock: Clock = utc_now):
        """
        Initialize notifier.

        Args:
            settings: Provides the dedup window and buffer capacity
            clock: Source of the current time
        """
        self.settings = settings or get_settings()
        self.clock = clock
        self.window = timedelta(seconds=self.settings.dedup_window_seconds)
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        # Newest first
        self._buffer: Deque[Notification] = deque(maxlen=self.settings.notification_capacity)

    def notify(self, kind: str, title: Optional[str], message: str) -> Optional[Notification]:
        """
        Post a notification unless an identical one is still in the window.

        Args:
            kind: Notification kind
            title: Heading; the kind's default heading when None
            message: Body text

        Returns:
            The stored notification, or None when suppressed
        """
        kind = NotificationKind(kind)

        with self._lock:
            now = self.clock()
            if self._is_duplicate(kind, message, now):
                logger.debug(f"Suppressed duplicate {kind.value} notification: {message}")
                return None

            notification = Notification(
                id=str(next(self._ids)),
                kind=kind,
                title=title if title is not None else DEFAULT_TITLES[kind],
                message=message,
                timestamp=now,
            )
            self._buffer.appendleft(notification)

        if kind == NotificationKind.ERROR:
            logger.error(f"{notification.title}: {message}")
        elif kind == NotificationKind.WARNING:
            logger.warning(f"{notification.title}: {message}")
        else:
            logger.info(f"{notification.title}: {message}")

        return notification

    def _is_duplicate(self, kind: NotificationKind, message: str, now: datetime) -> bool:
        # Buffer is newest first, so the first entry past the window ends the scan
        for notification in self._buffer:
            if now - notification.timestamp >= self.window:
                return False
            if notification.kind == kind and notification.message == message:
                return True
        return False

    def success(self, message: str, title: Optional[str] = None) -> Optional[Notification]:
        return self.notify(NotificationKind.SUCCESS, title, message)

    def error(self, message: str, title: Optional[str] = None) -> Optional[Notification]:
        return self.notify(NotificationKind.ERROR, title, message)

    def info(self, message: str, title: Optional[str] = None) -> Optional[Notification]:
        return self.notify(NotificationKind.INFO, title, message)

    def warning(self, message: str, title: Optional[str] = None) -> Optional[Notification]:
        return self.notify(NotificationKind.WARNING, title, message)

    def mark_read(self, notification_id: str) -> None:
        """Mark one notification as read. Unknown ids are ignored."""
        with self._lock:
            for notification in self._buffer:
                if notification.id == notification_id:
                    notification.read = True
                    return

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def notifications(self) -> List[Notification]:
        """Buffered notifications, newest first."""
        with self._lock:
            return list(self._buffer)

    @property
    def unread_count(self) -> int:
        with self._lock:
            return sum(1 for notification in self._buffer if not notification.read)
