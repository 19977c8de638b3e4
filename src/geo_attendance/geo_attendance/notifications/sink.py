from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceEvent:
    """Something an employee or reviewer may want to hear about."""

    name: str
    user_id: int
    occurred_at: datetime
    payload: Mapping[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    def emit(self, event: AttendanceEvent) -> None:
        raise NotImplementedError


class LoggingNotificationSink(NotificationSink):
    """Default sink: writes events to the log, delivers nothing."""

    def emit(self, event: AttendanceEvent) -> None:
        logger.info("event=%s user=%s payload=%s", event.name, event.user_id, dict(event.payload))


class RecordingNotificationSink(NotificationSink):
    """Keeps events in memory (used by the memory backend and tests)."""

    def __init__(self):
        self.events: list[AttendanceEvent] = []

    def emit(self, event: AttendanceEvent) -> None:
        self.events.append(event)


def safe_emit(sink: NotificationSink, event: AttendanceEvent) -> None:
    """Deliver `event`; a failing sink is logged and never propagates."""
    try:
        sink.emit(event)
    except Exception:
        logger.warning("Notification sink failed for %s (user %s)", event.name, event.user_id, exc_info=True)
