#!/usr/bin/env python3
"""Publish one inbound notification event to Kafka for local testing."""

from __future__ import annotations

import argparse
import sys
import uuid
from datetime import UTC, datetime
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notification_service.adapters.kafka_runtime import publish_notification_event  # noqa: E402
from notification_service.settings import load_env_file, load_settings  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    settings = load_settings()
    payload = build_payload(args)
    metadata = publish_notification_event(payload, settings=settings.kafka)

    print("[PUBLISHED]")
    print(f"topic={metadata['topic']}")
    print(f"partition={metadata['partition']}")
    print(f"offset={metadata['offset']}")
    print(f"id={payload['id']} type={payload['type']} to={payload['to']}")
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish one notification event for Kafka testing."
    )
    parser.add_argument("--to", required=True, help="Recipient email or phone number.")
    parser.add_argument(
        "--type",
        default="email",
        help="Channel type: email or whatsapp (other values are stored but not delivered).",
    )
    parser.add_argument("--message", default="Stock is below the reorder level.")
    parser.add_argument("--priority", default="medium", choices=["high", "medium", "low"])
    parser.add_argument("--organization-id", default="org-demo-1")
    parser.add_argument("--from", dest="sender", default="inventory-service")
    parser.add_argument("--id", default=None, help="Optional event id. Default: generated UUID.")
    return parser.parse_args()


def build_payload(args: argparse.Namespace) -> dict[str, object]:
    return {
        "id": args.id or f"ntf-{uuid.uuid4()}",
        "organization_id": args.organization_id,
        "to": args.to,
        "from": args.sender,
        "type": args.type,
        "priority": args.priority,
        "message": args.message,
        "created_at": datetime.now(tz=UTC).isoformat(),
    }


if __name__ == "__main__":
    sys.exit(main())
