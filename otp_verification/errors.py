"""
Error Taxonomy
==============
Typed failures raised by the auth orchestrator.

Every error carries a user-safe message, a stable code and the HTTP status
the API layer maps it to. Internal details stay in the logs.
"""

from typing import Optional


class AuthError(Exception):
    """Base exception for all orchestrator failures."""

    code = "AUTH_ERROR"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message, "code": self.code}


class AlreadyExistsError(AuthError):
    """A user with this email is already registered."""
    code = "ALREADY_EXISTS"
    status_code = 409
    default_message = "User already exists"


class NotFoundError(AuthError):
    """No user with this email."""
    code = "NOT_FOUND"
    status_code = 404
    default_message = "User not found"


class InvalidOtpError(AuthError):
    """Malformed, mismatched, expired or attempt-exhausted code."""
    code = "INVALID_OTP"
    status_code = 400
    default_message = "Invalid OTP"


class InvalidCredentialsError(AuthError):
    """Password did not match."""
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid email or password"


class NotVerifiedError(AuthError):
    """Login attempted before the email was verified."""
    code = "NOT_VERIFIED"
    status_code = 403
    default_message = "Email not verified. Please verify your email first."


class DeliveryFailureError(AuthError):
    """The notification sink could not deliver the code."""
    code = "DELIVERY_FAILURE"
    status_code = 502
    default_message = "Failed to send OTP email"


class UnexpectedError(AuthError):
    """Any failure outside the taxonomy, e.g. store unavailability."""
    code = "UNEXPECTED"
    status_code = 500
    default_message = "An unexpected error occurred"
