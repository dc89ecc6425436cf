"""
Shared fixtures: in-memory stores, a controllable clock and a recording sink.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import pytest

from otp_verification.audit import AuditLogger
from otp_verification.notifications import DeliveryError, NotificationSink
from otp_verification.otp import OtpConfig
from otp_verification.password import PasswordVerifier, build_hasher
from otp_verification.service import AuthOrchestrator
from otp_verification.session import SessionIssuer
from otp_verification.stores import InMemoryCredentialStore, InMemoryOtpStore


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def timestamp(self) -> float:
        return self.now.timestamp()

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink(NotificationSink):
    """Keeps every message instead of sending it."""

    name = "recording"

    def __init__(self):
        super().__init__()
        self.otps: List[Tuple[str, str]] = []
        self.welcomes: List[Tuple[str, str]] = []
        self.fail_otp = False
        self.fail_welcome = False

    async def send_otp(self, email: str, code: str) -> None:
        if self.fail_otp:
            raise DeliveryError("mail server down")
        self.otps.append((email, code))

    async def send_welcome(self, email: str, name: str) -> None:
        if self.fail_welcome:
            raise DeliveryError("mail server down")
        self.welcomes.append((email, name))

    def last_code(self, email: str) -> str:
        return [code for to, code in self.otps if to == email][-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def passwords():
    # Minimum Argon2 cost keeps the suite fast
    return PasswordVerifier(build_hasher(time_cost=1, memory_cost=1024, parallelism=1))


@pytest.fixture
def sessions(clock):
    return SessionIssuer("test-secret", ttl_seconds=3600, clock=clock.timestamp)


@pytest.fixture
def audit():
    return AuditLogger("test-service")


@pytest.fixture
def user_store():
    return InMemoryCredentialStore()


@pytest.fixture
def otp_store():
    return InMemoryOtpStore()


@pytest.fixture
def otp_config():
    return OtpConfig()


@pytest.fixture
def orchestrator(user_store, otp_store, sink, sessions, passwords, audit, otp_config, clock):
    return AuthOrchestrator(
        users=user_store,
        otps=otp_store,
        notifier=sink,
        sessions=sessions,
        passwords=passwords,
        audit=audit,
        config=otp_config,
        clock=clock,
    )
