# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from leave_engine.models.enums import NotificationEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    recipient_id: uuid.UUID
    event: NotificationEvent
    payload: dict[str, Any]


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for outbound notifications (email, chat, ...)."""

    async def notify(self, recipient_id: uuid.UUID, event: NotificationEvent, payload: dict[str, Any]) -> None: ...


class LoggingNotificationSink:
    """Default sink: writes the event to the log."""

    async def notify(self, recipient_id: uuid.UUID, event: NotificationEvent, payload: dict[str, Any]) -> None:
        logger.info("Notification %s for %s: %s", event, recipient_id, payload)


class InMemoryNotificationSink:
    """Records every notification; used in tests."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def notify(self, recipient_id: uuid.UUID, event: NotificationEvent, payload: dict[str, Any]) -> None:
        self.sent.append(Notification(recipient_id=recipient_id, event=event, payload=payload))


_notification_sink: NotificationSink = LoggingNotificationSink()


def get_notification_sink() -> NotificationSink:
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


async def notify_safely(recipient_id: uuid.UUID | None, event: NotificationEvent, payload: dict[str, Any]) -> None:
    """Deliver a notification; delivery failures are logged and never raised."""
    if recipient_id is None:
        return
    try:
        await get_notification_sink().notify(recipient_id, event, payload)
    except Exception:
        logger.exception("Failed to deliver %s notification to %s", event, recipient_id)
