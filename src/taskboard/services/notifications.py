# src/taskboard/services/notifications.py

from __future__ import annotations

import itertools
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from ..tasks.task_models import utc_now

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Severity(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(slots=True, frozen=True)
class Notification:
    id: str
    severity: Severity
    message: str
    duration_ms: int | None = None
    created_at: datetime = field(default_factory=utc_now)


class NotificationCenter:
    """
    Keeps the most recent notifications for a presentation layer to show.

    Implements the Notifier port. Every notification is also written to the
    log at a level matching its severity.
    """

    def __init__(self, limit: int = 20) -> None:
        self._items: deque[Notification] = deque(maxlen=max(1, int(limit)))
        self._ids = itertools.count(1)

    @property
    def notifications(self) -> list[Notification]:
        return list(self._items)

    def notify(self, severity: str, message: str, duration_ms: int | None = None) -> Notification:
        sev = Severity(severity)
        item = Notification(
            id=f"toast-{next(self._ids)}",
            severity=sev,
            message=message,
            duration_ms=duration_ms,
        )
        self._items.append(item)
        logger.log(_LOG_LEVELS[sev.value], "[%s] %s", sev.value, message)
        return item

    def show_success(self, message: str, duration_ms: int | None = None) -> Notification:
        return self.notify(Severity.SUCCESS, message, duration_ms)

    def show_error(self, message: str, duration_ms: int | None = None) -> Notification:
        return self.notify(Severity.ERROR, message, duration_ms)

    def show_info(self, message: str, duration_ms: int | None = None) -> Notification:
        return self.notify(Severity.INFO, message, duration_ms)

    def show_warning(self, message: str, duration_ms: int | None = None) -> Notification:
        return self.notify(Severity.WARNING, message, duration_ms)

    def dismiss(self, notification_id: str) -> None:
        kept = [n for n in self._items if n.id != notification_id]
        self._items.clear()
        self._items.extend(kept)

    def clear(self) -> None:
        self._items.clear()

    def drain(self) -> list[Notification]:
        """Return and forget everything shown so far (console polling)."""
        out = list(self._items)
        self._items.clear()
        return out
