"""Notification dispatch service: Kafka events in, email/WhatsApp out, records stored."""

from .adapters import (
    build_notification_store,
    build_notifiers,
    decode_notification,
    handle_batch,
    handle_message,
    publish_notification_event,
    run_dispatch_worker,
)
from .application import get_notifications
from .domain import Channel, Notification, NotificationStatus, StatusPolicy, dispatch_notification
from .errors import DecodeError, DeliveryError, StoreError, SubscriptionError
from .settings import Settings, load_settings

__all__ = [
    "Channel",
    "DecodeError",
    "DeliveryError",
    "Notification",
    "NotificationStatus",
    "Settings",
    "StatusPolicy",
    "StoreError",
    "SubscriptionError",
    "build_notification_store",
    "build_notifiers",
    "decode_notification",
    "dispatch_notification",
    "get_notifications",
    "handle_batch",
    "handle_message",
    "load_settings",
    "publish_notification_event",
    "run_dispatch_worker",
]
