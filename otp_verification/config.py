"""
Service Configuration
=====================
Settings loaded from environment variables.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from otp_verification.otp.models import OtpConfig

DEFAULT_SESSION_SECRET = "change-me"


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the verification service."""
    service_name: str = field(default_factory=lambda: _env("SERVICE_NAME", "otp-verification"))
    database_url: str = field(
        default_factory=lambda: _env("DATABASE_URL", "sqlite+aiosqlite:///./otp.db")
    )

    # Session credentials
    session_secret: str = field(default_factory=lambda: _env("SESSION_SECRET", DEFAULT_SESSION_SECRET))
    session_ttl_minutes: int = field(default_factory=lambda: _env_int("SESSION_TTL_MINUTES", 1440))

    # OTP policy
    otp_ttl_minutes: int = field(default_factory=lambda: _env_int("OTP_TTL_MINUTES", 15))
    otp_length: int = field(default_factory=lambda: _env_int("OTP_LENGTH", 6))
    otp_max_attempts: int = field(default_factory=lambda: _env_int("OTP_MAX_ATTEMPTS", 3))
    invalidate_previous_otps: bool = field(
        default_factory=lambda: _env_bool("OTP_INVALIDATE_PREVIOUS", False)
    )
    sweep_expired_on_request: bool = field(
        default_factory=lambda: _env_bool("OTP_SWEEP_ON_REQUEST", False)
    )
    sweep_interval_minutes: int = field(
        default_factory=lambda: _env_int("OTP_SWEEP_INTERVAL_MINUTES", 5)
    )
    send_welcome_email: bool = field(default_factory=lambda: _env_bool("SEND_WELCOME_EMAIL", True))

    # Email delivery (HTTP transactional API)
    email_api_url: str = field(
        default_factory=lambda: _env("EMAIL_API_URL", "https://api.brevo.com/v3/smtp/email")
    )
    email_api_key: str = field(default_factory=lambda: _env("EMAIL_API_KEY", ""))
    email_from: str = field(default_factory=lambda: _env("EMAIL_FROM", "no-reply@example.com"))
    email_from_name: str = field(default_factory=lambda: _env("EMAIL_FROM_NAME", "OTP Verification"))
    email_timeout_seconds: float = field(
        default_factory=lambda: float(_env("EMAIL_TIMEOUT_SECONDS", "15"))
    )
    email_max_attempts: int = field(default_factory=lambda: _env_int("EMAIL_MAX_ATTEMPTS", 3))

    # Argon2id cost
    password_time_cost: int = field(default_factory=lambda: _env_int("PASSWORD_TIME_COST", 3))
    password_memory_cost: int = field(default_factory=lambda: _env_int("PASSWORD_MEMORY_COST", 65536))
    password_parallelism: int = field(default_factory=lambda: _env_int("PASSWORD_PARALLELISM", 4))

    # Logging
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", True))

    def otp_config(self) -> OtpConfig:
        """OTP policy derived from these settings."""
        return OtpConfig(
            length=self.otp_length,
            expiry_seconds=self.otp_ttl_minutes * 60,
            max_attempts=self.otp_max_attempts,
            invalidate_previous=self.invalidate_previous_otps,
            sweep_on_request=self.sweep_expired_on_request,
            send_welcome=self.send_welcome_email,
        )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


def insecure_defaults(settings: Settings) -> List[str]:
    """Names of settings still at values unfit for production."""
    unsafe = []
    if settings.session_secret == DEFAULT_SESSION_SECRET:
        unsafe.append("SESSION_SECRET")
    return unsafe
