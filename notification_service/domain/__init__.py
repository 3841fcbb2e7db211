"""Domain layer: record types and channel routing."""

from .dispatch import EMAIL_SUBJECT, dispatch_notification, resolve_status
from .models import Channel, Notification, NotificationStatus, Priority, StatusPolicy

__all__ = [
    "EMAIL_SUBJECT",
    "Channel",
    "Notification",
    "NotificationStatus",
    "Priority",
    "StatusPolicy",
    "dispatch_notification",
    "resolve_status",
]
