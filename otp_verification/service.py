"""
Auth Orchestrator
=================
Registration, OTP issuance, OTP verification and login.

State machine
-------------
Users move UNREGISTERED -> REGISTERED_UNVERIFIED -> VERIFIED. The only
transition to VERIFIED is a successful ``verify_otp``; it never reverts.

OTP records are ACTIVE until consumed, expired or attempt-exhausted. Expiry
and exhaustion are derived at verification time from the timestamp and the
attempt counter.

Attempt counting: a verification whose code matches no unused record adds
one attempt to every unused, unexpired record of the user, so issuing extra
codes does not buy extra guesses. Once a record's counter reaches
``max_attempts`` it can no longer be accepted, even with the right code.

Every failure raises a typed ``AuthError``; nothing is retried here. Audit
writes are best-effort and never change the outcome of an operation.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, Optional

import structlog

from otp_verification.audit import AuditEventType, AuditLogger, AuditOutcome
from otp_verification.errors import (
    AlreadyExistsError,
    AuthError,
    DeliveryFailureError,
    InvalidCredentialsError,
    InvalidOtpError,
    NotFoundError,
    NotVerifiedError,
    UnexpectedError,
)
from otp_verification.models import AuthResult, OtpIssued, User
from otp_verification.notifications import NotificationSink
from otp_verification.otp import CodeGenerator, OtpConfig, OtpRecord, OtpState
from otp_verification.password import PasswordVerifier
from otp_verification.session import PURPOSE_ACCESS, PURPOSE_OTP, SessionIssuer
from otp_verification.stores import CredentialStore, DuplicateEmailError, OtpStore

logger = structlog.get_logger(__name__)

_REJECTED = {
    OtpState.CONSUMED: "Invalid OTP",
    OtpState.EXPIRED: "OTP has expired",
    OtpState.ATTEMPTS_EXHAUSTED: "Maximum attempts exceeded",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _guarded(operation: str):
    """Turn any non-AuthError escaping an operation into UnexpectedError."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except AuthError:
                raise
            except Exception as e:
                logger.exception("Unexpected failure", operation=operation)
                raise UnexpectedError() from e
        return wrapper
    return decorator


class AuthOrchestrator:
    """Coordinates stores, code generator, session issuer and notification sink."""

    def __init__(
        self,
        users: CredentialStore,
        otps: OtpStore,
        notifier: NotificationSink,
        sessions: SessionIssuer,
        passwords: PasswordVerifier,
        audit: AuditLogger,
        config: Optional[OtpConfig] = None,
        codes: Optional[CodeGenerator] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.users = users
        self.otps = otps
        self.notifier = notifier
        self.sessions = sessions
        self.passwords = passwords
        self.audit = audit
        self.config = config or OtpConfig()
        self.codes = codes or CodeGenerator(length=self.config.length)
        self._clock = clock

    async def _audit(
        self,
        event_type: AuditEventType,
        action: str,
        outcome: AuditOutcome,
        user: Optional[User] = None,
    ) -> None:
        try:
            await self.audit.log(
                event_type,
                action=action,
                outcome=outcome,
                resource_type="User",
                resource_id=str(user.id) if user is not None and user.id is not None else None,
            )
        except Exception:
            logger.exception("Failed to save audit log", event_type=event_type.value)

    @_guarded("register")
    async def register(self, email: str, password: str, first_name: str, last_name: str) -> AuthResult:
        """
        Create an unverified user.

        Raises:
            AlreadyExistsError: If the email is already registered
        """
        try:
            if await self.users.exists_by_email(email):
                raise AlreadyExistsError(f"User with email {email} already exists")

            user = User(
                email=email,
                password_hash=await self.passwords.hash(password),
                first_name=first_name,
                last_name=last_name,
                email_verified=False,
                created_at=self._clock(),
            )
            try:
                user = await self.users.save(user)
            except DuplicateEmailError as e:
                raise AlreadyExistsError(f"User with email {email} already exists") from e
        except AlreadyExistsError as e:
            logger.warning("Registration failed", reason=e.message)
            await self._audit(AuditEventType.USER_REGISTERED, "Registration failed", AuditOutcome.FAILURE)
            raise

        logger.info("User registered", user_id=user.id)
        await self._audit(AuditEventType.USER_REGISTERED, "User registration initiated", AuditOutcome.SUCCESS, user)

        return AuthResult(
            message="User registered successfully. Please verify your email.",
            user=user.to_view(),
        )

    @_guarded("request_otp")
    async def request_otp(self, email: str) -> OtpIssued:
        """
        Issue a new code for a user and email it.

        The record is committed before delivery and stays committed if
        delivery fails.

        Raises:
            NotFoundError: If no user has this email
            DeliveryFailureError: If the sink could not deliver the code
        """
        user = await self.users.find_by_email(email)
        if user is None:
            logger.warning("OTP request for unknown user")
            await self._audit(AuditEventType.OTP_REQUESTED, "OTP request failed", AuditOutcome.FAILURE)
            raise NotFoundError(f"User with email {email} not found")

        now = self._clock()

        if self.config.sweep_on_request:
            await self.sweep_expired(now)

        if self.config.invalidate_previous:
            invalidated = await self.otps.invalidate_active_for_user(user, now)
            if invalidated:
                logger.info("Previous OTPs invalidated", user_id=user.id, count=invalidated)

        code = self.codes.generate()
        token = self.sessions.issue(email, purpose=PURPOSE_OTP, ttl_seconds=self.config.expiry_seconds)
        record = await self.otps.save(OtpRecord(
            user_id=user.id,
            code=code,
            token=token,
            expires_at=now + timedelta(seconds=self.config.expiry_seconds),
            created_at=now,
        ))

        try:
            await self.notifier.send_otp(email, code)
        except Exception as e:
            logger.error("OTP delivery failed", user_id=user.id, otp_id=record.id, error=str(e))
            await self._audit(AuditEventType.OTP_REQUESTED, "OTP delivery failed", AuditOutcome.FAILURE, user)
            raise DeliveryFailureError() from e

        logger.info("OTP issued", user_id=user.id, otp_id=record.id)
        await self._audit(AuditEventType.OTP_REQUESTED, "OTP requested", AuditOutcome.SUCCESS, user)

        return OtpIssued(
            message="OTP sent successfully to your email",
            email=email,
            token=token,
            expires_at=record.expires_at,
        )

    @_guarded("verify_otp")
    async def verify_otp(self, email: str, code: str) -> AuthResult:
        """
        Consume a code and mark the user's email as verified.

        Raises:
            InvalidOtpError: Malformed, unknown, used, expired or exhausted code
            NotFoundError: If no user has this email
        """
        user = None
        try:
            if not self.codes.is_well_formed(code):
                raise InvalidOtpError("OTP format is invalid")

            user = await self.users.find_by_email(email)
            if user is None:
                raise NotFoundError(f"User with email {email} not found")

            now = self._clock()
            record = await self.otps.find_active_by_user_and_code(user, code)
            if record is None:
                await self._count_failed_attempt(user, now)
                raise InvalidOtpError("Invalid OTP")

            state = record.state(now, self.config.max_attempts)
            if state is not OtpState.ACTIVE:
                raise InvalidOtpError(_REJECTED[state])

            record.is_used = True
            await self.otps.save(record)

            user.email_verified = True
            user = await self.users.save(user)
        except (InvalidOtpError, NotFoundError) as e:
            logger.warning("OTP verification failed", reason=e.message)
            await self._audit(AuditEventType.OTP_VERIFIED, "OTP verification failed", AuditOutcome.FAILURE, user)
            raise

        token = self.sessions.issue(email, purpose=PURPOSE_ACCESS)
        logger.info("Email verified", user_id=user.id)
        await self._audit(AuditEventType.OTP_VERIFIED, "Email verified", AuditOutcome.SUCCESS, user)

        if self.config.send_welcome:
            await self._send_welcome(user)

        return AuthResult(message="Email verified successfully", token=token, user=user.to_view())

    async def _count_failed_attempt(self, user: User, now: datetime) -> None:
        counted = await self.otps.increment_attempts_for_user(user, now)
        logger.warning("Invalid OTP attempt", user_id=user.id, active_codes=counted)

    async def _send_welcome(self, user: User) -> None:
        # Verification is already committed; a lost welcome email is not an error.
        try:
            await self.notifier.send_welcome(user.email, user.first_name)
        except Exception as e:
            logger.warning("Welcome email failed", user_id=user.id, error=str(e))

    @_guarded("login")
    async def login(self, email: str, password: str) -> AuthResult:
        """
        Exchange email and password for an access credential.

        Raises:
            NotFoundError: If no user has this email
            InvalidCredentialsError: If the password does not match
            NotVerifiedError: If the email has not been verified
        """
        try:
            user = await self.users.find_by_email(email)
            if user is None:
                raise NotFoundError(f"User with email {email} not found")

            if not await self.passwords.matches(password, user.password_hash):
                raise InvalidCredentialsError()

            if not user.email_verified:
                raise NotVerifiedError()
        except Exception:
            logger.warning("Login failed")
            await self._audit(AuditEventType.AUTH_LOGIN, "Login failed", AuditOutcome.FAILURE)
            raise

        await self._upgrade_password_hash(user, password)

        token = self.sessions.issue(email, purpose=PURPOSE_ACCESS)
        logger.info("User logged in", user_id=user.id)
        await self._audit(AuditEventType.AUTH_LOGIN, "User login successful", AuditOutcome.SUCCESS, user)

        return AuthResult(message="Login successful", token=token, user=user.to_view())

    async def _upgrade_password_hash(self, user: User, password: str) -> None:
        # Legacy bcrypt and weaker Argon2 hashes are replaced after a successful login.
        if not self.passwords.needs_rehash(user.password_hash):
            return
        try:
            user.password_hash = await self.passwords.hash(password)
            await self.users.save(user)
        except Exception as e:
            logger.warning("Password rehash failed", user_id=user.id, error=str(e))
            return
        logger.info("Password hash upgraded", user_id=user.id)

    async def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Delete every OTP record that expired before ``now``."""
        deleted = await self.otps.delete_expired_before(now or self._clock())
        logger.debug("Expired OTP sweep finished", deleted=deleted)
        return deleted
