"""Application layer: use cases built on the adapters."""

from .query import get_notifications

__all__ = ["get_notifications"]
