"""
In-process notification center.

The booking engine emits one event per contract proposal and per status
change, addressed to the counterpart party. The center stores them in a
per-user inbox with read state and fans each event out to subscribers
(e.g. the realtime channel). Delivery mechanics beyond that are not the
engine's concern.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from booking_engine.errors import NotFound
from booking_engine.schemas.notification_schema import NotificationEvent, NotificationType

logger = logging.getLogger(__name__)

Listener = Callable[[NotificationEvent], None]


class NotificationCenter:
    """Per-user notification inbox with subscriber fan-out."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._inbox: dict[str, list[NotificationEvent]] = {}
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(
        self,
        type: NotificationType,
        recipient_id: str,
        related_entity_id: str,
        title: str,
        message: str,
        related_entity_type: str = "contract",
        payload: Optional[dict[str, str]] = None,
    ) -> NotificationEvent:
        """Store a notification and hand it to every subscriber."""
        event = NotificationEvent(
            id=f"NTF-{uuid.uuid4().hex[:8].upper()}",
            type=type,
            recipient_id=recipient_id,
            related_entity_id=related_entity_id,
            related_entity_type=related_entity_type,
            title=title,
            message=message,
            created_at=datetime.now(timezone.utc),
            payload=payload,
        )
        with self._lock:
            self._inbox.setdefault(recipient_id, []).append(event)

        logger.info("Notification %s (%s) -> %s", event.id, type.value, recipient_id)
        for listener in list(self._listeners):
            try:
                listener(event.model_copy())
            except Exception:
                logger.exception("Notification listener failed for %s", event.id)
        return event

    def list_for(self, user_id: str, limit: int = 50, offset: int = 0) -> list[NotificationEvent]:
        """Newest-first page of a user's notifications."""
        with self._lock:
            events = list(reversed(self._inbox.get(user_id, [])))
        return [e.model_copy() for e in events[offset:offset + limit]]

    def unread_count(self, user_id: str) -> int:
        with self._lock:
            return sum(1 for e in self._inbox.get(user_id, []) if not e.is_read)

    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        with self._lock:
            for event in self._inbox.get(user_id, []):
                if event.id == notification_id:
                    event.is_read = True
                    return
        raise NotFound("notification not found")

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification as read. Returns how many changed."""
        changed = 0
        with self._lock:
            for event in self._inbox.get(user_id, []):
                if not event.is_read:
                    event.is_read = True
                    changed += 1
        return changed

    def reset(self) -> None:
        """Drop every stored notification."""
        with self._lock:
            self._inbox.clear()
