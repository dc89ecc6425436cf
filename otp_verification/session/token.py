"""
Session Credentials
===================
Issues and verifies signed, time-bound bearer credentials.
"""

import time
import base64
import json
import hmac
import hashlib
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

TOKEN_VERSION = "1"

PURPOSE_ACCESS = "access"
PURPOSE_OTP = "otp"


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session credential."""
    subject: str
    purpose: str
    issued_at: int
    expires_at: int
    token_id: str


class SessionIssuer:
    """Generates and verifies HMAC-signed session credentials."""

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Session secret must not be empty")
        self.secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _sign(self, payload_b64: str) -> str:
        return hmac.new(
            self.secret.encode(),
            payload_b64.encode(),
            hashlib.sha256,
        ).hexdigest()

    def issue(
        self,
        subject: str,
        purpose: str = PURPOSE_ACCESS,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        """
        Issue a credential for a subject.

        Args:
            subject: Identity the credential asserts (the user's email)
            purpose: "access" for login sessions, "otp" for OTP correlation
            ttl_seconds: Lifetime override

        Returns:
            Signed credential
        """
        now = int(self._clock())
        payload = {
            "sub": subject,
            "pur": purpose,
            "iat": now,
            "exp": now + (ttl_seconds if ttl_seconds is not None else self.ttl_seconds),
            "jti": secrets.token_hex(8),
            "ver": TOKEN_VERSION,
        }

        payload_json = json.dumps(payload, separators=(',', ':'))
        payload_b64 = base64.urlsafe_b64encode(payload_json.encode()).decode()

        return f"{payload_b64}.{self._sign(payload_b64)}"

    def verify(self, token: str) -> Optional[SessionClaims]:
        """
        Verify a credential.

        Args:
            token: The credential

        Returns:
            Claims if the signature is valid and the credential is unexpired,
            None otherwise
        """
        try:
            parts = token.split('.')
            if len(parts) != 2:
                return None

            payload_b64, signature = parts

            if not hmac.compare_digest(signature, self._sign(payload_b64)):
                return None

            payload = json.loads(base64.urlsafe_b64decode(payload_b64).decode())

            if self._clock() > payload["exp"]:
                return None

            return SessionClaims(
                subject=payload["sub"],
                purpose=payload["pur"],
                issued_at=payload["iat"],
                expires_at=payload["exp"],
                token_id=payload["jti"],
            )
        except (AttributeError, ValueError, KeyError, TypeError):
            return None

    def is_valid_for(self, token: str, subject: str, purpose: Optional[str] = None) -> bool:
        """True if the credential is currently valid for this subject."""
        claims = self.verify(token)
        if claims is None or claims.subject != subject:
            return False
        return purpose is None or claims.purpose == purpose
