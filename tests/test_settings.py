from __future__ import annotations

import logging
import os
import tempfile
import unittest
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest import mock

from notification_service.domain.models import StatusPolicy
from notification_service.logging_config import configure_logging
from notification_service.settings import (
    LogSettings,
    load_env_file,
    load_settings,
    parse_bootstrap_servers,
)


class LoadSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = load_settings({})

        self.assertEqual(settings.kafka.bootstrap_servers, ())
        self.assertEqual(settings.kafka.topic, "notifications")
        self.assertEqual(settings.kafka.partition, 0)
        self.assertEqual(settings.kafka.start_offset, "newest")
        self.assertEqual(settings.kafka.poll_timeout_ms, 1000)
        self.assertEqual(settings.email.provider, "smtp")
        self.assertEqual(settings.email.smtp_port, 587)
        self.assertTrue(settings.email.smtp_starttls)
        self.assertEqual(settings.whatsapp.provider, "twilio")
        self.assertEqual(settings.store.backend, "sql")
        self.assertEqual(settings.store.database_url, "sqlite:///notifications.db")
        self.assertIs(settings.status_policy, StatusPolicy.FIXED)
        self.assertEqual(settings.logging.level, "INFO")

    def test_reads_provider_credentials(self) -> None:
        settings = load_settings(
            {
                "KAFKA_BOOTSTRAP_SERVERS": "localhost:9092, kafka:29092 ",
                "KAFKA_TOPIC": "inventory.notifications",
                "SMTP_HOST": "smtp.example.com",
                "SMTP_PORT": "2525",
                "SMTP_USERNAME": "alerts@example.com",
                "SMTP_PASSWORD": "secret",
                "SMTP_STARTTLS": "off",
                "WHATSAPP_PROVIDER_KEY": "AC123",
                "WHATSAPP_PROVIDER_SECRET": "token",
                "WHATSAPP_FROM_NUMBER": "+15555550111",
                "NOTIFICATION_STATUS_POLICY": "DERIVED",
                "LOG_LEVEL": "debug",
            }
        )

        self.assertEqual(settings.kafka.bootstrap_servers, ("localhost:9092", "kafka:29092"))
        self.assertEqual(settings.kafka.topic, "inventory.notifications")
        self.assertEqual(settings.email.smtp_port, 2525)
        self.assertEqual(settings.email.smtp_from_email, "alerts@example.com")
        self.assertFalse(settings.email.smtp_starttls)
        self.assertEqual(settings.whatsapp.account_sid, "AC123")
        self.assertIs(settings.status_policy, StatusPolicy.DERIVED)
        self.assertEqual(settings.logging.level, "DEBUG")

    def test_committed_offset_requires_group_id(self) -> None:
        with self.assertRaises(RuntimeError):
            load_settings({"KAFKA_START_OFFSET": "committed"})

        settings = load_settings({"KAFKA_START_OFFSET": "committed", "KAFKA_GROUP_ID": "workers"})
        self.assertEqual(settings.kafka.group_id, "workers")

    def test_invalid_values_raise(self) -> None:
        for env in (
            {"SMTP_STARTTLS": "maybe"},
            {"SMTP_PORT": "smtp"},
            {"KAFKA_POLL_TIMEOUT_SECONDS": "0"},
            {"STORE_BACKEND": "mongo"},
            {"EMAIL_PROVIDER": "pigeon"},
            {"NOTIFICATION_STATUS_POLICY": "sometimes"},
        ):
            with self.subTest(env=env), self.assertRaises(RuntimeError):
                load_settings(env)

    @mock.patch.dict(os.environ, {"KAFKA_TOPIC": "from-os-environ"}, clear=True)
    def test_defaults_to_os_environ(self) -> None:
        self.assertEqual(load_settings().kafka.topic, "from-os-environ")

    def test_parse_bootstrap_servers_skips_blanks(self) -> None:
        self.assertEqual(parse_bootstrap_servers(" a:1, ,b:2,"), ["a:1", "b:2"])


class LoadEnvFileTests(unittest.TestCase):
    @mock.patch.dict(os.environ, {"SMTP_HOST": "already-set"}, clear=True)
    def test_loads_missing_keys_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / ".env"
            path.write_text(
                "# comment\nSMTP_HOST=from-file\nKAFKA_TOPIC='quoted-topic'\nnot a pair\n",
                encoding="utf-8",
            )
            load_env_file(path)

            self.assertEqual(os.environ["SMTP_HOST"], "already-set")
            self.assertEqual(os.environ["KAFKA_TOPIC"], "quoted-topic")

    def test_missing_file_is_ignored(self) -> None:
        load_env_file(Path("/nonexistent/.env"))


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        saved_handlers = list(root.handlers)
        saved_level = root.level

        def restore() -> None:
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

        self.addCleanup(restore)

    def test_adds_rotating_file_handler_when_configured(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "notifications.log"

            root = configure_logging(
                LogSettings(level="WARNING", file_name=str(log_file), file_max_mb=1, file_backups=2)
            )

            self.assertEqual(root.level, logging.WARNING)
            file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
            self.assertEqual(len(file_handlers), 1)
            self.assertEqual(file_handlers[0].maxBytes, 1024 * 1024)
            self.assertEqual(file_handlers[0].backupCount, 2)
            file_handlers[0].close()
            root.removeHandler(file_handlers[0])

    def test_rejects_unknown_level(self) -> None:
        with self.assertRaises(RuntimeError):
            configure_logging(LogSettings(level="LOUD"))


if __name__ == "__main__":
    unittest.main()
