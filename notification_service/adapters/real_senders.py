"""Real provider adapters for production-like sending.

Mental model refresher:
- This module is an outbound adapter.
- Each class satisfies the `Notifier` capability: `send(to=, subject=, body=)`.
- Every provider failure surfaces as a single `DeliveryError`.
- `build_notifiers` picks the adapter per channel once, from settings.
"""

from __future__ import annotations

import base64
import json
import logging
import smtplib
import urllib.error
import urllib.parse
import urllib.request
from email.message import EmailMessage
from typing import Any, Callable

from ..domain.models import Channel
from ..errors import DeliveryError
from ..settings import EmailSettings, Settings, WhatsAppSettings, required_setting
from ..types import Notifier
from .fake_senders import ConsoleNotifier

logger = logging.getLogger(__name__)

WHATSAPP_BODY_TEMPLATE = "Your verification code is: {message}"


class SmtpEmailNotifier:
    """Send plain-text email through an authenticated SMTP relay."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        starttls: bool = True,
        timeout_seconds: float = 10.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.starttls = starttls
        self.timeout_seconds = timeout_seconds
        self._smtp_factory = smtp_factory

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> SmtpEmailNotifier:
        return cls(
            host=required_setting(settings.smtp_host, "SMTP_HOST"),
            port=settings.smtp_port,
            username=required_setting(settings.smtp_username, "SMTP_USERNAME"),
            password=required_setting(settings.smtp_password, "SMTP_PASSWORD"),
            from_email=required_setting(settings.smtp_from_email, "SMTP_FROM_EMAIL"),
            starttls=settings.smtp_starttls,
            timeout_seconds=settings.smtp_timeout_seconds,
        )

    def send(self, *, to: str, subject: str, body: str) -> None:
        message = build_email_message(from_email=self.from_email, to=to, subject=subject, body=body)
        try:
            with self._smtp_factory(self.host, self.port, timeout=self.timeout_seconds) as client:
                if self.starttls:
                    client.starttls()
                client.login(self.username, self.password)
                client.send_message(message)
        except smtplib.SMTPAuthenticationError as exc:
            raise DeliveryError(f"SMTP authentication failed: {exc.smtp_code}") from exc
        except smtplib.SMTPException as exc:
            raise DeliveryError(f"SMTP email send failed: {exc}") from exc
        except OSError as exc:
            raise DeliveryError(f"SMTP connection to {self.host}:{self.port} failed: {exc}") from exc


class MailgunEmailNotifier:
    """Send email via the Mailgun REST API."""

    def __init__(
        self,
        *,
        api_key: str,
        domain: str,
        from_email: str,
        base_url: str = "https://api.mailgun.net",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.domain = domain
        self.from_email = from_email
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> MailgunEmailNotifier:
        return cls(
            api_key=required_setting(settings.mailgun_api_key, "MAILGUN_API_KEY"),
            domain=required_setting(settings.mailgun_domain, "MAILGUN_DOMAIN"),
            from_email=required_setting(settings.mailgun_from_email, "MAILGUN_FROM_EMAIL"),
            base_url=settings.mailgun_api_base_url,
            timeout_seconds=settings.mailgun_timeout_seconds,
        )

    def send(self, *, to: str, subject: str, body: str) -> None:
        encoded_domain = urllib.parse.quote(self.domain, safe="")
        endpoint = f"{self.base_url}/v3/{encoded_domain}/messages"
        payload = urllib.parse.urlencode(
            {"from": self.from_email, "to": to, "subject": subject, "text": body}
        ).encode("utf-8")

        request = urllib.request.Request(endpoint, data=payload, method="POST")
        request.add_header("Authorization", _basic_auth_header("api", self.api_key))
        request.add_header("Content-Type", "application/x-www-form-urlencoded")
        _post(request, provider="Mailgun email", timeout_seconds=self.timeout_seconds)


class TwilioWhatsAppNotifier:
    """Send WhatsApp messages via the Twilio Messages API.

    The body is always wrapped in `WHATSAPP_BODY_TEMPLATE`, whatever the
    message is about.
    """

    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        base_url: str = "https://api.twilio.com",
        timeout_seconds: float = 10.0,
    ) -> None:
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: WhatsAppSettings) -> TwilioWhatsAppNotifier:
        return cls(
            account_sid=required_setting(settings.account_sid, "WHATSAPP_PROVIDER_KEY"),
            auth_token=required_setting(settings.auth_token, "WHATSAPP_PROVIDER_SECRET"),
            from_number=required_setting(settings.from_number, "WHATSAPP_FROM_NUMBER"),
            base_url=settings.api_base_url,
            timeout_seconds=settings.timeout_seconds,
        )

    def send(self, *, to: str, subject: str, body: str) -> None:
        _ = subject
        endpoint = f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        payload = urllib.parse.urlencode(
            {
                "To": f"whatsapp:{to}",
                "From": f"whatsapp:{self.from_number}",
                "Body": WHATSAPP_BODY_TEMPLATE.format(message=body),
            }
        ).encode("utf-8")

        request = urllib.request.Request(endpoint, data=payload, method="POST")
        request.add_header("Authorization", _basic_auth_header(self.account_sid, self.auth_token))
        request.add_header("Content-Type", "application/x-www-form-urlencoded")
        response_body = _post(request, provider="Twilio WhatsApp", timeout_seconds=self.timeout_seconds)
        logger.info("[WHATSAPP SENT] to=%s sid=%s", to, _message_sid(response_body))


def build_notifiers(settings: Settings) -> dict[Channel, Notifier]:
    """Select one adapter per channel from configuration."""
    notifiers: dict[Channel, Notifier] = {}

    email_provider = settings.email.provider
    if email_provider == "smtp":
        notifiers[Channel.EMAIL] = SmtpEmailNotifier.from_settings(settings.email)
    elif email_provider == "mailgun":
        notifiers[Channel.EMAIL] = MailgunEmailNotifier.from_settings(settings.email)
    elif email_provider == "console":
        notifiers[Channel.EMAIL] = ConsoleNotifier(Channel.EMAIL)
    else:
        raise ValueError(f"unsupported email provider: {email_provider}")

    whatsapp_provider = settings.whatsapp.provider
    if whatsapp_provider == "twilio":
        notifiers[Channel.WHATSAPP] = TwilioWhatsAppNotifier.from_settings(settings.whatsapp)
    elif whatsapp_provider == "console":
        notifiers[Channel.WHATSAPP] = ConsoleNotifier(Channel.WHATSAPP)
    elif whatsapp_provider != "disabled":
        raise ValueError(f"unsupported whatsapp provider: {whatsapp_provider}")

    return notifiers


def build_email_message(*, from_email: str, to: str, subject: str, body: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = from_email
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return message


def _post(request: urllib.request.Request, *, provider: str, timeout_seconds: float) -> bytes:
    try:
        with urllib.request.urlopen(request, timeout=timeout_seconds) as response:
            status = int(response.getcode())
            if status < 200 or status >= 300:
                raise DeliveryError(f"{provider} send failed with status {status}")
            return response.read()
    except urllib.error.HTTPError as exc:
        details = exc.read().decode("utf-8", errors="replace")
        raise DeliveryError(f"{provider} send failed HTTP {exc.code}: {details[:300]}") from exc
    except urllib.error.URLError as exc:
        raise DeliveryError(f"{provider} send failed: {exc.reason}") from exc


def _message_sid(response_body: bytes) -> Any:
    try:
        parsed = json.loads(response_body or b"{}")
    except ValueError:
        return None
    return parsed.get("sid") if isinstance(parsed, dict) else None


def _basic_auth_header(username: str, password: str) -> str:
    token = f"{username}:{password}".encode("utf-8")
    encoded = base64.b64encode(token).decode("ascii")
    return f"Basic {encoded}"
