"""Channel routing logic.

Mental model refresher:
- Domain modules hold channel/business rules.
- They decide what should happen for a record:
  - which channel adapter handles it?
  - what subject and body go out?
  - what status does the record end up with?
- They do not parse Kafka records or touch storage.
"""

from __future__ import annotations

import logging
from typing import Mapping

from ..types import ChannelResult, Notifier
from .models import Channel, Notification, NotificationStatus, StatusPolicy

logger = logging.getLogger(__name__)

EMAIL_SUBJECT = "Reorder the quantity"


def dispatch_notification(
    notification: Notification,
    notifiers: Mapping[Channel, Notifier],
) -> ChannelResult:
    """Send one record through the adapter for its channel.

    Unknown channels are dropped and adapter failures are logged; neither is
    raised to the caller.
    """
    channel = Channel.lookup(notification.channel)
    notifier = notifiers.get(channel) if channel is not None else None
    if notifier is None:
        logger.warning(
            "[UNROUTED] notification_id=%s type=%r has no delivery adapter",
            notification.notification_id,
            notification.channel,
        )
        return _result(notification.channel, routed=False, success=False, error=None)

    subject = EMAIL_SUBJECT if channel is Channel.EMAIL else ""
    logger.info(
        "[DISPATCH] notification_id=%s channel=%s to=%s",
        notification.notification_id,
        channel.value,
        notification.to,
    )
    try:
        notifier.send(to=notification.to, subject=subject, body=notification.message)
    except Exception as exc:
        logger.error(
            "[DELIVERY FAILED] notification_id=%s channel=%s error=%s",
            notification.notification_id,
            channel.value,
            exc,
        )
        return _result(channel.value, routed=True, success=False, error=str(exc))

    return _result(channel.value, routed=True, success=True, error=None)


def resolve_status(result: ChannelResult, policy: StatusPolicy) -> NotificationStatus:
    if policy is StatusPolicy.FIXED:
        return NotificationStatus.DELIVERED
    if not result["routed"]:
        return NotificationStatus.UNROUTED
    if result["success"]:
        return NotificationStatus.DELIVERED
    return NotificationStatus.FAILED


def _result(channel: str, *, routed: bool, success: bool, error: str | None) -> ChannelResult:
    return {"channel": channel, "routed": routed, "success": success, "error": error}
