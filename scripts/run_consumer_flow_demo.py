#!/usr/bin/env python3
"""Run the consumer flow without Kafka, using console senders and an in-memory store."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notification_service.adapters.consumer_handler import handle_batch  # noqa: E402
from notification_service.adapters.fake_senders import ConsoleNotifier  # noqa: E402
from notification_service.adapters.store import InMemoryNotificationStore  # noqa: E402
from notification_service.application.query import get_notifications  # noqa: E402
from notification_service.domain.models import Channel  # noqa: E402
from notification_service.errors import DeliveryError  # noqa: E402
from notification_service.logging_config import configure_logging  # noqa: E402
from notification_service.settings import LogSettings  # noqa: E402


class FlakyEmailNotifier(ConsoleNotifier):
    def send(self, *, to: str, subject: str, body: str) -> None:
        if to == "fail-email@example.com":
            raise DeliveryError("email provider unavailable")
        super().send(to=to, subject=subject, body=body)


def main() -> int:
    configure_logging(LogSettings(level="INFO"))
    store = InMemoryNotificationStore()
    notifiers = {
        Channel.EMAIL: FlakyEmailNotifier(Channel.EMAIL),
        Channel.WHATSAPP: ConsoleNotifier(Channel.WHATSAPP),
    }

    results = handle_batch(sample_records(), notifiers=notifiers, store=store)

    print("")
    print("[BATCH SUMMARY]")
    for result in results:
        meta = result["record_meta"]
        print(f"offset={meta['offset']} status={result['status']} error={result['error']}")

    print("")
    print("[STORED]")
    for notification in get_notifications(store):
        print(
            f"id={notification.notification_id} type={notification.channel} "
            f"status={notification.status}"
        )
    return 0


def sample_records() -> list[dict[str, Any]]:
    def record(offset: int, value: bytes) -> dict[str, Any]:
        return {"topic": "notifications", "partition": 0, "offset": offset, "value": value}

    return [
        record(100, b'{"id":"n1","type":"email","to":"a@b.com","message":"hello"}'),
        record(
            101,
            b'{"id":"n2","organization_id":"org-1","type":"whatsapp","to":"+15555550123",'
            b'"priority":"high","message":"4821","created_at":"2026-02-20T15:00:00Z"}',
        ),
        record(102, b'{"id":"n3","type":"fax","to":"+15555550199","message":"unsupported"}'),
        record(103, b'{"id":"n4","type":"email","to":"fail-email@example.com","message":"x"}'),
        record(104, b'{"id":"n5","type":"email","to":'),
    ]


if __name__ == "__main__":
    sys.exit(main())
