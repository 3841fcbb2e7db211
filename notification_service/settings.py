"""Environment-variable configuration for the worker and scripts.

Settings are read once at startup by `load_settings` and passed down
explicitly; adapters never read the environment themselves.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .domain.models import StatusPolicy

START_OFFSET_NEWEST = "newest"
START_OFFSET_COMMITTED = "committed"


@dataclass(frozen=True)
class KafkaSettings:
    bootstrap_servers: tuple[str, ...]
    topic: str = "notifications"
    partition: int = 0
    start_offset: str = START_OFFSET_NEWEST
    group_id: str | None = None
    poll_timeout_ms: int = 1000
    max_records: int = 50
    drain_seconds: float = 5.0
    send_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class EmailSettings:
    provider: str = "smtp"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_from_email: str | None = None
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0
    mailgun_api_key: str | None = None
    mailgun_domain: str | None = None
    mailgun_from_email: str | None = None
    mailgun_api_base_url: str = "https://api.mailgun.net"
    mailgun_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class WhatsAppSettings:
    provider: str = "twilio"
    account_sid: str | None = None
    auth_token: str | None = None
    from_number: str | None = None
    api_base_url: str = "https://api.twilio.com"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class StoreSettings:
    backend: str = "sql"
    database_url: str = "sqlite:///notifications.db"


@dataclass(frozen=True)
class LogSettings:
    level: str = "INFO"
    file_name: str | None = None
    file_max_mb: int = 10
    file_backups: int = 5


@dataclass(frozen=True)
class Settings:
    kafka: KafkaSettings
    email: EmailSettings
    whatsapp: WhatsAppSettings
    store: StoreSettings
    logging: LogSettings
    status_policy: StatusPolicy = StatusPolicy.FIXED


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build `Settings` from environment variables (defaults to `os.environ`)."""
    env = os.environ if environ is None else environ

    start_offset = _env_choice(
        env, "KAFKA_START_OFFSET", START_OFFSET_NEWEST, {START_OFFSET_NEWEST, START_OFFSET_COMMITTED}
    )
    group_id = _optional(env, "KAFKA_GROUP_ID")
    if start_offset == START_OFFSET_COMMITTED and group_id is None:
        raise RuntimeError("KAFKA_GROUP_ID is required when KAFKA_START_OFFSET=committed")

    kafka = KafkaSettings(
        bootstrap_servers=tuple(parse_bootstrap_servers(env.get("KAFKA_BOOTSTRAP_SERVERS", ""))),
        topic=_optional(env, "KAFKA_TOPIC") or "notifications",
        partition=_env_int(env, "KAFKA_PARTITION", 0),
        start_offset=start_offset,
        group_id=group_id,
        poll_timeout_ms=_poll_timeout_ms(env),
        max_records=_env_int(env, "KAFKA_MAX_RECORDS_PER_POLL", 50),
        drain_seconds=_env_float(env, "KAFKA_SHUTDOWN_DRAIN_SECONDS", 5.0),
        send_timeout_seconds=_env_float(env, "KAFKA_SEND_TIMEOUT_SECONDS", 10.0),
    )

    smtp_username = _optional(env, "SMTP_USERNAME")
    email = EmailSettings(
        provider=_env_choice(env, "EMAIL_PROVIDER", "smtp", {"smtp", "mailgun", "console"}),
        smtp_host=_optional(env, "SMTP_HOST"),
        smtp_port=_env_int(env, "SMTP_PORT", 587),
        smtp_username=smtp_username,
        smtp_password=_optional(env, "SMTP_PASSWORD"),
        smtp_from_email=_optional(env, "SMTP_FROM_EMAIL") or smtp_username,
        smtp_starttls=_env_bool(env, "SMTP_STARTTLS", default=True),
        smtp_timeout_seconds=_env_float(env, "SMTP_TIMEOUT_SECONDS", 10.0),
        mailgun_api_key=_optional(env, "MAILGUN_API_KEY"),
        mailgun_domain=_optional(env, "MAILGUN_DOMAIN"),
        mailgun_from_email=_optional(env, "MAILGUN_FROM_EMAIL"),
        mailgun_api_base_url=(
            _optional(env, "MAILGUN_API_BASE_URL") or "https://api.mailgun.net"
        ).rstrip("/"),
        mailgun_timeout_seconds=_env_float(env, "MAILGUN_TIMEOUT_SECONDS", 10.0),
    )

    whatsapp = WhatsAppSettings(
        provider=_env_choice(env, "WHATSAPP_PROVIDER", "twilio", {"twilio", "console", "disabled"}),
        account_sid=_optional(env, "WHATSAPP_PROVIDER_KEY"),
        auth_token=_optional(env, "WHATSAPP_PROVIDER_SECRET"),
        from_number=_optional(env, "WHATSAPP_FROM_NUMBER"),
        api_base_url=(_optional(env, "TWILIO_API_BASE_URL") or "https://api.twilio.com").rstrip("/"),
        timeout_seconds=_env_float(env, "TWILIO_TIMEOUT_SECONDS", 10.0),
    )

    store = StoreSettings(
        backend=_env_choice(env, "STORE_BACKEND", "sql", {"sql", "memory"}),
        database_url=_optional(env, "DATABASE_URL") or "sqlite:///notifications.db",
    )

    log = LogSettings(
        level=(_optional(env, "LOG_LEVEL") or "INFO").upper(),
        file_name=_optional(env, "LOG_FILE"),
        file_max_mb=_env_int(env, "LOG_FILE_MAX_MB", 10),
        file_backups=_env_int(env, "LOG_FILE_BACKUPS", 5),
    )

    policy = _env_choice(
        env,
        "NOTIFICATION_STATUS_POLICY",
        StatusPolicy.FIXED.value,
        {item.value for item in StatusPolicy},
    )

    return Settings(
        kafka=kafka,
        email=email,
        whatsapp=whatsapp,
        store=store,
        logging=log,
        status_policy=StatusPolicy(policy),
    )


def parse_bootstrap_servers(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_env_file(path: Path) -> None:
    """Load `KEY=VALUE` lines into `os.environ` without overriding existing keys."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def required_setting(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value.strip()


def _optional(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None:
        return None
    text = value.strip()
    return text or None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"Invalid boolean value for {name}: {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _optional(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer value for {name}: {raw!r}") from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _optional(env, name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number value for {name}: {raw!r}") from exc


def _env_choice(env: Mapping[str, str], name: str, default: str, choices: set[str]) -> str:
    value = (_optional(env, name) or default).lower()
    if value not in choices:
        raise RuntimeError(f"Invalid value for {name}: {value!r} (expected one of {sorted(choices)})")
    return value


def _poll_timeout_ms(env: Mapping[str, str]) -> int:
    timeout_seconds = _env_float(env, "KAFKA_POLL_TIMEOUT_SECONDS", 1.0)
    timeout_ms = int(timeout_seconds * 1000)
    if timeout_ms <= 0:
        raise RuntimeError("KAFKA_POLL_TIMEOUT_SECONDS must be > 0")
    return timeout_ms
