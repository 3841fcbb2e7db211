"""Notification persistence adapters.

Mental model refresher:
- This module is an outbound adapter for durable storage.
- Writes are upserts keyed by `notification_id`; a repeated identifier
  replaces the stored fields instead of adding a second row.
- Reads return records in insertion order.
- `build_notification_store` picks the backend once, from settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from ..domain.models import Notification
from ..errors import StoreError
from ..settings import StoreSettings

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


class NotificationStore(Protocol):
    def store_notification(self, notification: Notification) -> None: ...

    def list_notifications(self, notification_filter: NotificationFilter) -> list[Notification]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class NotificationFilter:
    """Free-text key plus organization constraint; empty values match all."""

    key: str = ""
    organization_id: str = ""

    def matches(self, notification: Notification) -> bool:
        if self.organization_id and notification.organization_id != self.organization_id:
            return False
        if not self.key:
            return True
        needle = self.key.lower()
        return any(needle in value.lower() for value in _searchable_values(notification))


def build_notification_filter(key: str | None, organization_id: str | None) -> NotificationFilter:
    return NotificationFilter(
        key=(key or "").strip(),
        organization_id=(organization_id or "").strip(),
    )


def _searchable_values(notification: Notification) -> tuple[str, ...]:
    return (
        notification.notification_id,
        notification.to,
        notification.sender,
        notification.channel,
        notification.priority,
        notification.status,
        notification.message,
    )


class InMemoryNotificationStore:
    """Process-local store used for tests and local demo runs."""

    def __init__(self) -> None:
        self._records: dict[str, Notification] = {}

    def store_notification(self, notification: Notification) -> None:
        self._records[notification.notification_id] = notification

    def list_notifications(self, notification_filter: NotificationFilter) -> list[Notification]:
        return [item for item in self._records.values() if notification_filter.matches(item)]

    def close(self) -> None:
        return None


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


class NotificationModel(Base):
    __tablename__ = "notification"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(String(255), nullable=False, unique=True, index=True)
    organization_id = Column(String(255), nullable=False, default="", index=True)
    recipient = Column(String(320), nullable=False)
    sender = Column(String(320), nullable=False, default="")
    channel = Column(String(50), nullable=False)
    priority = Column(String(20), nullable=False, default="")
    message = Column(Text, nullable=False)
    status = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class SqlAlchemyNotificationStore:
    """Store records in any database SQLAlchemy can reach."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        Base.metadata.create_all(engine)

    @classmethod
    def from_url(cls, database_url: str) -> SqlAlchemyNotificationStore:
        return cls(create_engine(database_url))

    def store_notification(self, notification: Notification) -> None:
        try:
            with self._session_factory() as session:
                model = (
                    session.query(NotificationModel)
                    .filter(NotificationModel.notification_id == notification.notification_id)
                    .one_or_none()
                )
                if model is None:
                    model = NotificationModel(notification_id=notification.notification_id)
                    session.add(model)
                else:
                    logger.warning(
                        "[UPSERT] notification_id=%s already stored; replacing fields",
                        notification.notification_id,
                    )
                self._apply_entity_to_model(model, notification)
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(
                f"failed to store notification {notification.notification_id}: {exc}"
            ) from exc

    def list_notifications(self, notification_filter: NotificationFilter) -> list[Notification]:
        try:
            with self._session_factory() as session:
                query = session.query(NotificationModel)
                if notification_filter.organization_id:
                    query = query.filter(
                        NotificationModel.organization_id == notification_filter.organization_id
                    )
                if notification_filter.key:
                    pattern = f"%{_escape_like(notification_filter.key)}%"
                    query = query.filter(
                        or_(
                            NotificationModel.notification_id.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.recipient.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.sender.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.channel.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.priority.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.status.ilike(pattern, escape=LIKE_ESCAPE),
                            NotificationModel.message.ilike(pattern, escape=LIKE_ESCAPE),
                        )
                    )
                query = query.order_by(NotificationModel.id.asc())
                return [self._to_entity(model) for model in query.all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list notifications: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        model.organization_id = notification.organization_id
        model.recipient = notification.to
        model.sender = notification.sender
        model.channel = notification.channel
        model.priority = notification.priority
        model.message = notification.message
        model.status = notification.status
        model.created_at = _as_utc(notification.created_at)
        model.updated_at = _as_utc(notification.updated_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            notification_id=model.notification_id,
            organization_id=model.organization_id,
            to=model.recipient,
            sender=model.sender,
            channel=model.channel,
            priority=model.priority,
            message=model.message,
            status=model.status,
            created_at=_ensure_utc(model.created_at),
            updated_at=_ensure_utc(model.updated_at),
        )


def build_notification_store(settings: StoreSettings) -> NotificationStore:
    if settings.backend == "sql":
        return SqlAlchemyNotificationStore.from_url(settings.database_url)
    if settings.backend == "memory":
        return InMemoryNotificationStore()
    raise ValueError(f"unsupported store backend: {settings.backend}")


def _escape_like(key: str) -> str:
    return (
        key.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC)


def _ensure_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; aware values are written as UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
