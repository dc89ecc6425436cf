"""
OTP Verification
================
Email ownership verification with one-time passcodes.
"""

__version__ = "1.0.0"

# Errors
from otp_verification.errors import (
    AuthError,
    AlreadyExistsError,
    NotFoundError,
    InvalidOtpError,
    InvalidCredentialsError,
    NotVerifiedError,
    DeliveryFailureError,
    UnexpectedError,
)

# Models
from otp_verification.models import User, UserView, AuthResult, OtpIssued

# OTP
from otp_verification.otp import CodeGenerator, OtpConfig, OtpRecord, OtpState

# Sessions
from otp_verification.session import SessionIssuer, SessionClaims

# Core
from otp_verification.service import AuthOrchestrator

__all__ = [
    "__version__",
    # Errors
    "AuthError",
    "AlreadyExistsError",
    "NotFoundError",
    "InvalidOtpError",
    "InvalidCredentialsError",
    "NotVerifiedError",
    "DeliveryFailureError",
    "UnexpectedError",
    # Models
    "User",
    "UserView",
    "AuthResult",
    "OtpIssued",
    # OTP
    "CodeGenerator",
    "OtpConfig",
    "OtpRecord",
    "OtpState",
    # Sessions
    "SessionIssuer",
    "SessionClaims",
    # Core
    "AuthOrchestrator",
]
