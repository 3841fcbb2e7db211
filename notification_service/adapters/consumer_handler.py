"""Consumer-handler adapter functions.

Mental model refresher:
- This is the controller-like entrypoint for event processing.
- The Kafka loop calls this after polling a record.
- Flow:
  record -> decode -> dispatch -> set status -> persist
- Every per-message failure ends here as a result dict; nothing is raised
  back into the loop.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Sequence

from ..domain.dispatch import dispatch_notification, resolve_status
from ..domain.models import Channel, StatusPolicy
from ..errors import DecodeError, StoreError
from ..types import HandlerResult, Notifier, Record
from .payload import decode_notification
from .store import NotificationStore

logger = logging.getLogger(__name__)

STATUS_STORED = "stored"
STATUS_DECODE_FAILED = "decode_failed"
STATUS_STORE_FAILED = "store_failed"


def handle_message(
    record: Record,
    *,
    notifiers: Mapping[Channel, Notifier],
    store: NotificationStore,
    status_policy: StatusPolicy = StatusPolicy.FIXED,
    now: Callable[[], datetime] | None = None,
) -> HandlerResult:
    """Handle one incoming record.

    Delivery failures never stop the record from being persisted. A decode
    failure skips dispatch and storage; a store failure is not retried.
    """
    meta = _record_meta(record)
    try:
        notification = decode_notification(record.get("value"), now=now)
    except DecodeError as exc:
        logger.warning(
            "[DECODE FAILED] topic=%s partition=%s offset=%s error=%s",
            meta["topic"],
            meta["partition"],
            meta["offset"],
            exc,
        )
        return _result(STATUS_DECODE_FAILED, meta, error=f"decode_failed: {exc}")

    delivery = dispatch_notification(notification, notifiers)
    notification = notification.with_status(resolve_status(delivery, status_policy))

    try:
        store.store_notification(notification)
    except StoreError as exc:
        logger.error(
            "[STORE FAILED] notification_id=%s offset=%s error=%s",
            notification.notification_id,
            meta["offset"],
            exc,
        )
        return _result(
            STATUS_STORE_FAILED,
            meta,
            notification=notification,
            delivery=delivery,
            error=f"store_failed: {exc}",
        )

    return _result(STATUS_STORED, meta, notification=notification, delivery=delivery)


def handle_batch(
    records: Sequence[Record],
    *,
    notifiers: Mapping[Channel, Notifier],
    store: NotificationStore,
    status_policy: StatusPolicy = StatusPolicy.FIXED,
    now: Callable[[], datetime] | None = None,
) -> list[HandlerResult]:
    """Handle a batch of records sequentially using `handle_message`."""
    return [
        handle_message(
            record,
            notifiers=notifiers,
            store=store,
            status_policy=status_policy,
            now=now,
        )
        for record in records
    ]


def _result(
    status: str,
    meta: dict[str, Any],
    *,
    notification: Any = None,
    delivery: Any = None,
    error: str | None = None,
) -> HandlerResult:
    return {
        "status": status,
        "record_meta": meta,
        "notification": notification,
        "delivery": delivery,
        "error": error,
    }


def _record_meta(record: Record) -> dict[str, Any]:
    return {
        "topic": record.get("topic"),
        "partition": record.get("partition"),
        "offset": record.get("offset"),
    }
