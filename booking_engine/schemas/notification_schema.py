"""Notification events emitted by the booking engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    CONTRACT_PROPOSAL = "CONTRACT_PROPOSAL"
    CONTRACT_STATUS_CHANGE = "CONTRACT_STATUS_CHANGE"


class NotificationEvent(BaseModel):
    """One in-app notification addressed to a single user."""

    id: str
    type: NotificationType
    recipient_id: str
    related_entity_id: str
    related_entity_type: str = "contract"
    title: str
    message: str
    is_read: bool = False
    created_at: datetime
    payload: Optional[dict[str, str]] = None
