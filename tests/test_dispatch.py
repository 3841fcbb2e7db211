from __future__ import annotations

import unittest
from datetime import UTC, datetime
from typing import Any

from notification_service.domain.dispatch import (
    EMAIL_SUBJECT,
    dispatch_notification,
    resolve_status,
)
from notification_service.domain.models import (
    Channel,
    Notification,
    NotificationStatus,
    StatusPolicy,
)
from notification_service.errors import DeliveryError


def make_notification(**overrides: Any) -> Notification:
    base: dict[str, Any] = {
        "notification_id": "n1",
        "organization_id": "org-1",
        "to": "a@b.com",
        "sender": "inventory",
        "channel": "email",
        "priority": "high",
        "message": "hello",
        "status": "Pending",
        "created_at": datetime(2026, 2, 20, 15, 0, tzinfo=UTC),
        "updated_at": datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
    }
    return Notification(**(base | overrides))


class RecordingNotifier:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[dict[str, str]] = []
        self.error = error

    def send(self, *, to: str, subject: str, body: str) -> None:
        self.calls.append({"to": to, "subject": subject, "body": body})
        if self.error is not None:
            raise self.error


class DispatchNotificationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.email = RecordingNotifier()
        self.whatsapp = RecordingNotifier()
        self.notifiers = {Channel.EMAIL: self.email, Channel.WHATSAPP: self.whatsapp}

    def test_email_goes_only_to_email_notifier(self) -> None:
        result = dispatch_notification(make_notification(), self.notifiers)

        self.assertEqual(
            self.email.calls, [{"to": "a@b.com", "subject": EMAIL_SUBJECT, "body": "hello"}]
        )
        self.assertEqual(self.whatsapp.calls, [])
        self.assertEqual(
            result, {"channel": "email", "routed": True, "success": True, "error": None}
        )

    def test_email_subject_is_fixed(self) -> None:
        self.assertEqual(EMAIL_SUBJECT, "Reorder the quantity")

    def test_whatsapp_goes_only_to_whatsapp_notifier(self) -> None:
        notification = make_notification(channel="whatsapp", to="+15555550123", message="4821")

        result = dispatch_notification(notification, self.notifiers)

        self.assertEqual(self.email.calls, [])
        self.assertEqual(len(self.whatsapp.calls), 1)
        self.assertEqual(self.whatsapp.calls[0]["to"], "+15555550123")
        self.assertEqual(self.whatsapp.calls[0]["body"], "4821")
        self.assertTrue(result["success"])

    def test_unknown_channel_invokes_nothing_and_does_not_raise(self) -> None:
        result = dispatch_notification(make_notification(channel="fax"), self.notifiers)

        self.assertEqual(self.email.calls, [])
        self.assertEqual(self.whatsapp.calls, [])
        self.assertFalse(result["routed"])
        self.assertEqual(result["channel"], "fax")

    def test_channel_without_configured_notifier_is_unrouted(self) -> None:
        result = dispatch_notification(
            make_notification(channel="whatsapp"), {Channel.EMAIL: self.email}
        )
        self.assertFalse(result["routed"])
        self.assertEqual(self.email.calls, [])

    def test_adapter_failure_is_swallowed(self) -> None:
        failing = RecordingNotifier(error=DeliveryError("relay rejected recipient"))

        result = dispatch_notification(make_notification(), {Channel.EMAIL: failing})

        self.assertTrue(result["routed"])
        self.assertFalse(result["success"])
        self.assertIn("relay rejected", result["error"])


class ResolveStatusTests(unittest.TestCase):
    def test_fixed_policy_always_delivered(self) -> None:
        for result in (
            {"routed": True, "success": True},
            {"routed": True, "success": False},
            {"routed": False, "success": False},
        ):
            self.assertEqual(
                resolve_status(result, StatusPolicy.FIXED), NotificationStatus.DELIVERED
            )

    def test_derived_policy_reflects_outcome(self) -> None:
        self.assertEqual(
            resolve_status({"routed": True, "success": True}, StatusPolicy.DERIVED),
            NotificationStatus.DELIVERED,
        )
        self.assertEqual(
            resolve_status({"routed": True, "success": False}, StatusPolicy.DERIVED),
            NotificationStatus.FAILED,
        )
        self.assertEqual(
            resolve_status({"routed": False, "success": False}, StatusPolicy.DERIVED),
            NotificationStatus.UNROUTED,
        )


class NotificationModelTests(unittest.TestCase):
    def test_with_status_returns_new_record(self) -> None:
        notification = make_notification()
        delivered = notification.with_status(NotificationStatus.DELIVERED)

        self.assertEqual(notification.status, "Pending")
        self.assertEqual(delivered.status, "Delivered")
        self.assertEqual(delivered.notification_id, "n1")

    def test_to_dict_uses_wire_field_names(self) -> None:
        data = make_notification().to_dict()

        self.assertEqual(data["from"], "inventory")
        self.assertEqual(data["type"], "email")
        self.assertEqual(data["created_at"], "2026-02-20T15:00:00+00:00")
        self.assertEqual(data["updated_at"], "2026-03-01T12:00:00+00:00")

    def test_channel_lookup(self) -> None:
        self.assertIs(Channel.lookup("email"), Channel.EMAIL)
        self.assertIsNone(Channel.lookup("fax"))


if __name__ == "__main__":
    unittest.main()
