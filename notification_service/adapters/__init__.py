"""Adapter layer: payload decoding, senders, storage, and Kafka runtime."""

from .consumer_handler import handle_batch, handle_message
from .fake_senders import ConsoleNotifier
from .kafka_runtime import (
    consume_until_stopped,
    open_partition_consumer,
    publish_notification_event,
    run_dispatch_worker,
)
from .payload import decode_notification
from .real_senders import (
    MailgunEmailNotifier,
    SmtpEmailNotifier,
    TwilioWhatsAppNotifier,
    build_notifiers,
)
from .store import (
    InMemoryNotificationStore,
    NotificationFilter,
    SqlAlchemyNotificationStore,
    build_notification_filter,
    build_notification_store,
)

__all__ = [
    "ConsoleNotifier",
    "InMemoryNotificationStore",
    "MailgunEmailNotifier",
    "NotificationFilter",
    "SmtpEmailNotifier",
    "SqlAlchemyNotificationStore",
    "TwilioWhatsAppNotifier",
    "build_notification_filter",
    "build_notification_store",
    "build_notifiers",
    "consume_until_stopped",
    "decode_notification",
    "handle_batch",
    "handle_message",
    "open_partition_consumer",
    "publish_notification_event",
    "run_dispatch_worker",
]
