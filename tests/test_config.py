"""
Tests for settings and application wiring.
"""

import structlog

from otp_verification.app import build_notifier
from otp_verification.config import Settings, insecure_defaults
from otp_verification.logging_config import setup_logging
from otp_verification.notifications import HttpEmailSink, LoggingEmailSink


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("OTP_TTL_MINUTES", "OTP_MAX_ATTEMPTS", "OTP_INVALIDATE_PREVIOUS", "EMAIL_API_KEY"):
            monkeypatch.delenv(name, raising=False)

        config = Settings().otp_config()

        assert config.length == 6
        assert config.expiry_seconds == 900
        assert config.max_attempts == 3
        assert config.invalidate_previous is False
        assert config.sweep_on_request is False

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("OTP_TTL_MINUTES", "5")
        monkeypatch.setenv("OTP_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("OTP_INVALIDATE_PREVIOUS", "true")
        monkeypatch.setenv("SEND_WELCOME_EMAIL", "0")

        config = Settings().otp_config()

        assert config.expiry_seconds == 300
        assert config.max_attempts == 5
        assert config.invalidate_previous is True
        assert config.send_welcome is False

    def test_default_session_secret_is_flagged(self, monkeypatch):
        monkeypatch.delenv("SESSION_SECRET", raising=False)

        assert insecure_defaults(Settings()) == ["SESSION_SECRET"]

    def test_custom_session_secret_is_not_flagged(self):
        assert insecure_defaults(Settings(session_secret="s3cret")) == []


class TestWiring:

    def test_logging_sink_without_api_key(self):
        assert isinstance(build_notifier(Settings(email_api_key="")), LoggingEmailSink)

    def test_http_sink_with_api_key(self):
        sink = build_notifier(Settings(email_api_key="key", otp_ttl_minutes=10))

        assert isinstance(sink, HttpEmailSink)
        assert sink.otp_expiry_minutes == 10

    def test_setup_logging(self):
        setup_logging("test-service", level="DEBUG", json_output=False)

        assert structlog.contextvars.get_contextvars()["service"] == "test-service"
        structlog.contextvars.clear_contextvars()
