"""Read-side use case: list stored notifications."""

from __future__ import annotations

from ..adapters.store import NotificationStore, build_notification_filter
from ..domain.models import Notification


def get_notifications(
    store: NotificationStore,
    key: str | None = None,
    organization_id: str | None = None,
) -> list[Notification]:
    """Return stored notifications matching `key` within `organization_id`.

    Either argument may be empty to leave that constraint off.
    """
    return store.list_notifications(build_notification_filter(key, organization_id))
