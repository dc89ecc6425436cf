"""
OTP Models
==========
Data models and enums for OTP issuance and verification.
"""

from datetime import datetime
from typing import Optional
from dataclasses import dataclass
from enum import Enum


class OtpState(str, Enum):
    """Derived lifecycle state of an OTP record."""
    ACTIVE = "active"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"


@dataclass
class OtpConfig:
    """Configuration for OTP issuance and verification."""
    length: int = 6
    expiry_seconds: int = 900  # 15 minutes
    max_attempts: int = 3
    invalidate_previous: bool = False
    sweep_on_request: bool = False
    send_welcome: bool = True


@dataclass
class OtpRecord:
    """An issued code bound to a user."""
    user_id: int
    code: str
    token: str
    expires_at: datetime
    created_at: datetime
    is_used: bool = False
    attempt_count: int = 0
    id: Optional[int] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def state(self, now: datetime, max_attempts: int = 3) -> OtpState:
        if self.is_used:
            return OtpState.CONSUMED
        if self.is_expired(now):
            return OtpState.EXPIRED
        if self.attempt_count >= max_attempts:
            return OtpState.ATTEMPTS_EXHAUSTED
        return OtpState.ACTIVE
