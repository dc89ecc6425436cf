"""
SQL Stores
==========
SQLAlchemy-backed credential, OTP and audit stores.

Each store call runs in its own session and commits before returning, so
single-record writes are atomic.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column
import structlog

from otp_verification.audit import AuditEvent
from otp_verification.database import Base
from otp_verification.models import User
from otp_verification.otp.models import OtpRecord

from .base import CredentialStore, DuplicateEmailError, OtpStore

logger = structlog.get_logger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo; everything is stored in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            password_hash=self.password_hash,
            first_name=self.first_name,
            last_name=self.last_name,
            email_verified=self.email_verified,
            created_at=_aware(self.created_at),
        )


class OtpTokenRow(Base):
    __tablename__ = "otp_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    otp: Mapped[str] = mapped_column(String(16))
    token: Mapped[str] = mapped_column(Text)
    expiry_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    attempt_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def to_record(self) -> OtpRecord:
        return OtpRecord(
            id=self.id,
            user_id=self.user_id,
            code=self.otp,
            token=self.token,
            expires_at=_aware(self.expiry_time),
            created_at=_aware(self.created_at),
            is_used=self.is_used,
            attempt_count=self.attempt_count,
        )


class SqlCredentialStore(CredentialStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self._sessions() as session:
            row = await session.scalar(select(UserRow).where(UserRow.email == email))
            return row.to_user() if row else None

    async def exists_by_email(self, email: str) -> bool:
        async with self._sessions() as session:
            found = await session.scalar(select(UserRow.id).where(UserRow.email == email))
            return found is not None

    async def save(self, user: User) -> User:
        async with self._sessions() as session:
            row = await session.get(UserRow, user.id) if user.id is not None else None
            if row is None:
                row = UserRow(
                    email=user.email,
                    created_at=user.created_at or datetime.now(timezone.utc),
                )
                session.add(row)
            row.password_hash = user.password_hash
            row.first_name = user.first_name
            row.last_name = user.last_name
            row.email_verified = user.email_verified
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateEmailError(user.email) from e
            return row.to_user()


class SqlOtpStore(OtpStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def find_active_by_user_and_code(self, user: User, code: str) -> Optional[OtpRecord]:
        query = (
            select(OtpTokenRow)
            .where(
                OtpTokenRow.user_id == user.id,
                OtpTokenRow.otp == code,
                OtpTokenRow.is_used.is_(False),
            )
            .order_by(OtpTokenRow.created_at.desc(), OtpTokenRow.id.desc())
            .limit(1)
        )
        async with self._sessions() as session:
            row = await session.scalar(query)
            return row.to_record() if row else None

    async def find_latest_active_by_user(self, user: User, now: datetime) -> Optional[OtpRecord]:
        query = (
            select(OtpTokenRow)
            .where(
                OtpTokenRow.user_id == user.id,
                OtpTokenRow.is_used.is_(False),
                OtpTokenRow.expiry_time >= now,
            )
            .order_by(OtpTokenRow.created_at.desc(), OtpTokenRow.id.desc())
            .limit(1)
        )
        async with self._sessions() as session:
            row = await session.scalar(query)
            return row.to_record() if row else None

    async def save(self, record: OtpRecord) -> OtpRecord:
        async with self._sessions() as session:
            row = await session.get(OtpTokenRow, record.id) if record.id is not None else None
            if row is None:
                row = OtpTokenRow(user_id=record.user_id, created_at=record.created_at)
                session.add(row)
            row.otp = record.code
            row.token = record.token
            row.expiry_time = record.expires_at
            row.is_used = record.is_used
            row.attempt_count = record.attempt_count
            await session.commit()
            return row.to_record()

    async def increment_attempts_for_user(self, user: User, now: datetime) -> int:
        statement = (
            update(OtpTokenRow)
            .where(
                OtpTokenRow.user_id == user.id,
                OtpTokenRow.is_used.is_(False),
                OtpTokenRow.expiry_time >= now,
            )
            .values(attempt_count=OtpTokenRow.attempt_count + 1)
            .execution_options(synchronize_session=False)
        )
        async with self._sessions() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount or 0

    async def invalidate_active_for_user(self, user: User, now: datetime) -> int:
        statement = (
            update(OtpTokenRow)
            .where(
                OtpTokenRow.user_id == user.id,
                OtpTokenRow.is_used.is_(False),
                OtpTokenRow.expiry_time >= now,
            )
            .values(is_used=True)
        )
        async with self._sessions() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount or 0

    async def delete_expired_before(self, now: datetime) -> int:
        async with self._sessions() as session:
            result = await session.execute(delete(OtpTokenRow).where(OtpTokenRow.expiry_time < now))
            await session.commit()
            deleted = result.rowcount or 0
        if deleted:
            logger.info("Expired OTP records deleted", count=deleted)
        return deleted


class AuditLogRow(Base):
    __tablename__ = "audit_logs"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(32), unique=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    service: Mapped[str] = mapped_column(String(100))
    event_type: Mapped[str] = mapped_column(String(64), index=True)
    action: Mapped[str] = mapped_column(String(255))
    outcome: Mapped[str] = mapped_column(String(16))
    actor_id: Mapped[Optional[str]] = mapped_column(String(64))
    resource_type: Mapped[Optional[str]] = mapped_column(String(64))
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
    hash: Mapped[str] = mapped_column(String(64))
    previous_hash: Mapped[Optional[str]] = mapped_column(String(64))

    def to_event(self) -> AuditEvent:
        return AuditEvent(
            id=self.event_id,
            timestamp=_aware(self.timestamp),
            service=self.service,
            event_type=self.event_type,
            action=self.action,
            outcome=self.outcome,
            hash=self.hash,
            previous_hash=self.previous_hash,
            actor_id=self.actor_id,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            ip_address=self.ip_address,
            payload=self.payload or {},
        )


class SqlAuditStore:
    """Append-only audit rows in chain order. ``append`` is the AuditLogger sink."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    async def append(self, event: AuditEvent) -> None:
        async with self._sessions() as session:
            session.add(AuditLogRow(
                event_id=event.id,
                timestamp=event.timestamp,
                service=event.service,
                event_type=event.event_type,
                action=event.action,
                outcome=event.outcome,
                actor_id=event.actor_id,
                resource_type=event.resource_type,
                resource_id=event.resource_id,
                ip_address=event.ip_address,
                payload=event.payload,
                hash=event.hash,
                previous_hash=event.previous_hash,
            ))
            await session.commit()

    async def latest_hash(self) -> Optional[str]:
        """Head of the stored chain, used to resume it after a restart."""
        async with self._sessions() as session:
            return await session.scalar(
                select(AuditLogRow.hash).order_by(AuditLogRow.seq.desc()).limit(1)
            )

    async def list_events(self) -> List[AuditEvent]:
        async with self._sessions() as session:
            rows = await session.scalars(select(AuditLogRow).order_by(AuditLogRow.seq))
            return [row.to_event() for row in rows]

    async def find_by_resource(self, resource_type: str, resource_id: str) -> List[AuditEvent]:
        query = (
            select(AuditLogRow)
            .where(AuditLogRow.resource_type == resource_type, AuditLogRow.resource_id == resource_id)
            .order_by(AuditLogRow.seq)
        )
        async with self._sessions() as session:
            rows = await session.scalars(query)
            return [row.to_event() for row in rows]
