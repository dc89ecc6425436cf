"""
Domain Models
=============
Users and the results returned by the auth orchestrator.
"""

from datetime import datetime
from typing import Optional
from dataclasses import dataclass


@dataclass
class User:
    """A registered account."""
    email: str
    password_hash: str
    first_name: str
    last_name: str
    email_verified: bool = False
    created_at: Optional[datetime] = None
    id: Optional[int] = None

    def to_view(self) -> "UserView":
        return UserView(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            email_verified=self.email_verified,
        )


@dataclass(frozen=True)
class UserView:
    """Public projection of a user: no password hash, no tokens."""
    id: Optional[int]
    email: str
    first_name: str
    last_name: str
    email_verified: bool


@dataclass(frozen=True)
class AuthResult:
    """Outcome of register, verify_otp and login."""
    message: str
    success: bool = True
    token: Optional[str] = None
    user: Optional[UserView] = None


@dataclass(frozen=True)
class OtpIssued:
    """Outcome of request_otp. Never carries the code."""
    message: str
    email: str
    token: str
    expires_at: datetime
    success: bool = True
