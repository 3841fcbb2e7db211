"""Payload adapter functions.

Mental model refresher:
- This is an adapter/edge module.
- It translates transport-shaped data (Kafka message value) into the internal
  `Notification` record used by domain/application code.
- It validates shape and required fields, but it does not validate the
  channel or priority against their enums; routing decides what to do with
  unknown values.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Callable, Mapping

from ..domain.models import Notification, NotificationStatus
from ..errors import DecodeError


def decode_notification(
    raw: bytes | str | Mapping[str, Any],
    *,
    now: Callable[[], datetime] | None = None,
) -> Notification:
    """Decode one inbound event into a pending `Notification` record.

    `created_at` is preserved from the payload (a naive value is read as UTC);
    `updated_at` is stamped from `now` (UTC wall clock by default).
    """
    payload = _deserialize_json_object(raw)
    clock = now or _utc_now

    return Notification(
        notification_id=_as_required_str(payload.get("id"), "id"),
        organization_id=_as_str(payload.get("organization_id")),
        to=_as_required_str(payload.get("to"), "to"),
        sender=_as_str(payload.get("from")),
        channel=_as_required_str(payload.get("type"), "type"),
        priority=_as_str(payload.get("priority")),
        message=_as_message(payload.get("message")),
        status=NotificationStatus.PENDING.value,
        created_at=_as_optional_datetime(payload.get("created_at"), "created_at"),
        updated_at=clock(),
    )


def _deserialize_json_object(raw: bytes | str | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw

    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"payload is not valid UTF-8: {exc}") from exc
    elif isinstance(raw, str):
        text = raw
    else:
        raise DecodeError(f"Unsupported payload type: {type(raw).__name__}")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise DecodeError("payload must decode to a JSON object")
    return parsed


def _as_required_str(value: Any, field_name: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise DecodeError(f"Missing required field: {field_name}")
    return text


def _as_message(value: Any) -> str:
    # Body is delivered and stored exactly as sent.
    if value is None:
        raise DecodeError("Missing required field: message")
    if not isinstance(value, str):
        raise DecodeError(f"Invalid message body: expected string, got {type(value).__name__}")
    return value


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_optional_datetime(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"Invalid timestamp for {field_name}: {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise DecodeError(f"Invalid timestamp for {field_name}: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)
