#!/usr/bin/env python3
"""Run the Kafka notification dispatch worker.

The worker consumes inbound notification events, delivers them over email or
WhatsApp, and stores one record per event. SIGINT/SIGTERM request a stop; the
worker drains already-fetched records for KAFKA_SHUTDOWN_DRAIN_SECONDS.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from notification_service.adapters.kafka_runtime import run_dispatch_worker  # noqa: E402
from notification_service.adapters.store import build_notification_store  # noqa: E402
from notification_service.logging_config import configure_logging  # noqa: E402
from notification_service.settings import load_env_file, load_settings  # noqa: E402

logger = logging.getLogger("notification_service.worker")


def main() -> int:
    parse_args()
    load_env_file(REPO_ROOT / ".env")
    settings = load_settings()
    configure_logging(settings.logging)

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    store = build_notification_store(settings.store)
    try:
        return run_dispatch_worker(settings, store=store, stop_event=stop_event)
    finally:
        store.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run Kafka consumer loop for email/WhatsApp notifications."
    )
    return parser.parse_args()


def install_signal_handlers(stop_event: threading.Event) -> None:
    def request_stop(signum: int, _frame: object) -> None:
        logger.info("[WORKER STOP] received %s", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)


if __name__ == "__main__":
    sys.exit(main())
