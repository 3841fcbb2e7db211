"""Fake sender adapters for local smoke runs.

Selected with `EMAIL_PROVIDER=console` / `WHATSAPP_PROVIDER=console`; they log
what would have been sent instead of calling a provider.
"""

from __future__ import annotations

import logging

from ..domain.models import Channel

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    def __init__(self, channel: Channel) -> None:
        self.channel = channel

    def send(self, *, to: str, subject: str, body: str) -> None:
        logger.info(
            "[%s] to=%s subject=%s body=%s",
            self.channel.value.upper(),
            to,
            subject,
            body,
        )
