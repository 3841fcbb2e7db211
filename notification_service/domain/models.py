"""Notification record types.

Mental model refresher:
- Domain modules hold the shapes the pipeline passes around.
- An inbound event becomes a `Notification` at decode time; its status is set
  once before the single persistence write.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class Channel(str, Enum):
    """Closed set of delivery channels."""

    EMAIL = "email"
    WHATSAPP = "whatsapp"

    @classmethod
    def lookup(cls, value: str) -> Channel | None:
        try:
            return cls(value)
        except ValueError:
            return None


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class NotificationStatus(str, Enum):
    PENDING = "Pending"
    DELIVERED = "Delivered"
    FAILED = "Failed"
    UNROUTED = "Unrouted"


class StatusPolicy(str, Enum):
    """How the persisted status is chosen after dispatch.

    FIXED always records `Delivered`, regardless of the adapter outcome.
    DERIVED records what the dispatcher actually observed.
    """

    FIXED = "fixed"
    DERIVED = "derived"


@dataclass(frozen=True)
class Notification:
    """Durable representation of one processed inbound event."""

    notification_id: str
    organization_id: str
    to: str
    sender: str
    channel: str
    priority: str
    message: str
    status: str
    created_at: datetime | None
    updated_at: datetime

    def with_status(self, status: NotificationStatus | str) -> Notification:
        value = status.value if isinstance(status, NotificationStatus) else str(status)
        return replace(self, status=value)

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted record schema as a JSON-compatible dict."""
        return {
            "notification_id": self.notification_id,
            "organization_id": self.organization_id,
            "to": self.to,
            "from": self.sender,
            "type": self.channel,
            "priority": self.priority,
            "message": self.message,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat(),
        }
