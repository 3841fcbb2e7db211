"""Error taxonomy for the notification pipeline.

Only `SubscriptionError` is fatal to the worker. The other errors are
per-message and are logged by the consumer handler.
"""

from __future__ import annotations


class NotificationServiceError(Exception):
    """Base class for notification service errors."""


class DecodeError(NotificationServiceError, ValueError):
    """Raised when a message payload is not a valid inbound event."""


class DeliveryError(NotificationServiceError, RuntimeError):
    """Raised by a delivery adapter when the provider send fails."""


class StoreError(NotificationServiceError, RuntimeError):
    """Raised when a notification record cannot be persisted or read."""


class SubscriptionError(NotificationServiceError, RuntimeError):
    """Raised when the stream or its partition cannot be attached."""
