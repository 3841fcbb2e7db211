#!/usr/bin/env python3
"""Print stored notifications as JSON."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notification_service.adapters.store import build_notification_store  # noqa: E402
from notification_service.application.query import get_notifications  # noqa: E402
from notification_service.settings import load_env_file, load_settings  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    settings = load_settings()

    store = build_notification_store(settings.store)
    try:
        notifications = get_notifications(store, args.key, args.organization_id)
    finally:
        store.close()

    print(json.dumps([item.to_dict() for item in notifications], indent=2))
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="List stored notifications.")
    parser.add_argument("--key", default="", help="Free-text filter (id, recipient, type, message...).")
    parser.add_argument("--organization-id", default="", help="Restrict to one organization.")
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
