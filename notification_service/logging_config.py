"""Logging setup for the worker and scripts."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .settings import LogSettings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(settings: LogSettings) -> logging.Logger:
    """Attach stream (and optional rotating file) handlers to the root logger."""
    root = logging.getLogger()
    level = logging.getLevelName(settings.level)
    if not isinstance(level, int):
        raise RuntimeError(f"Invalid value for LOG_LEVEL: {settings.level!r}")
    root.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if settings.file_name:
        file_handler = RotatingFileHandler(
            settings.file_name,
            maxBytes=settings.file_max_mb * 1024 * 1024,
            backupCount=settings.file_backups,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
