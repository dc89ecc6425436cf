"""
Store Contracts
===============
Persistence interfaces consumed by the auth orchestrator.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from otp_verification.models import User
from otp_verification.otp.models import OtpRecord


class DuplicateEmailError(Exception):
    """Raised by `CredentialStore.save` when inserting an email that already exists."""


class CredentialStore(ABC):
    """Durable user records keyed by email (case-sensitive)."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def exists_by_email(self, email: str) -> bool:
        ...

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Insert or update a user.

        Returns:
            The stored copy with its id

        Raises:
            DuplicateEmailError: On inserting an email that already exists
        """
        ...


class OtpStore(ABC):
    """Durable OTP records. Every call is atomic for the records it touches."""

    @abstractmethod
    async def find_active_by_user_and_code(self, user: User, code: str) -> Optional[OtpRecord]:
        """Latest unused record for (user, code), expired or not."""
        ...

    @abstractmethod
    async def find_latest_active_by_user(self, user: User, now: datetime) -> Optional[OtpRecord]:
        """Latest unused, unexpired record for a user."""
        ...

    @abstractmethod
    async def save(self, record: OtpRecord) -> OtpRecord:
        ...

    @abstractmethod
    async def increment_attempts_for_user(self, user: User, now: datetime) -> int:
        """Add one failed attempt to every unused, unexpired record of a user."""
        ...

    @abstractmethod
    async def invalidate_active_for_user(self, user: User, now: datetime) -> int:
        """Mark all unused, unexpired records of a user as used."""
        ...

    @abstractmethod
    async def delete_expired_before(self, now: datetime) -> int:
        """Delete every record whose expiry is before ``now``."""
        ...
