"""
In-Memory Stores
================
Process-local stores for development and testing.
Use the SQL stores in production.
"""

import asyncio
import itertools
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from otp_verification.models import User
from otp_verification.otp.models import OtpRecord

from .base import CredentialStore, DuplicateEmailError, OtpStore


class InMemoryCredentialStore(CredentialStore):
    """Users held in a dict keyed by email."""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> Optional[User]:
        user = self._users.get(email)
        return replace(user) if user else None

    async def exists_by_email(self, email: str) -> bool:
        return email in self._users

    async def save(self, user: User) -> User:
        async with self._lock:
            stored = replace(user)
            if stored.id is None:
                if stored.email in self._users:
                    raise DuplicateEmailError(stored.email)
                stored.id = next(self._ids)
            self._users[stored.email] = stored
            return replace(stored)


class InMemoryOtpStore(OtpStore):
    """OTP records held in a dict keyed by record id."""

    def __init__(self):
        self._records: Dict[int, OtpRecord] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def _newest(self, records) -> Optional[OtpRecord]:
        records = sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)
        return replace(records[0]) if records else None

    async def find_active_by_user_and_code(self, user: User, code: str) -> Optional[OtpRecord]:
        return self._newest(
            r for r in self._records.values()
            if r.user_id == user.id and r.code == code and not r.is_used
        )

    async def find_latest_active_by_user(self, user: User, now: datetime) -> Optional[OtpRecord]:
        return self._newest(
            r for r in self._records.values()
            if r.user_id == user.id and not r.is_used and r.expires_at >= now
        )

    async def save(self, record: OtpRecord) -> OtpRecord:
        async with self._lock:
            stored = replace(record)
            if stored.id is None:
                stored.id = next(self._ids)
            self._records[stored.id] = stored
            return replace(stored)

    async def increment_attempts_for_user(self, user: User, now: datetime) -> int:
        async with self._lock:
            count = 0
            for record in self._records.values():
                if record.user_id == user.id and not record.is_used and record.expires_at >= now:
                    record.attempt_count += 1
                    count += 1
            return count

    async def invalidate_active_for_user(self, user: User, now: datetime) -> int:
        async with self._lock:
            count = 0
            for record in self._records.values():
                if record.user_id == user.id and not record.is_used and record.expires_at >= now:
                    record.is_used = True
                    count += 1
            return count

    async def delete_expired_before(self, now: datetime) -> int:
        async with self._lock:
            expired = [rid for rid, r in self._records.items() if r.expires_at < now]
            for rid in expired:
                del self._records[rid]
            return len(expired)

    def __len__(self) -> int:
        return len(self._records)
