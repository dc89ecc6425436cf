"""
Stores
======
Credential, OTP and audit persistence.
"""

from .base import CredentialStore, DuplicateEmailError, OtpStore
from .memory import InMemoryCredentialStore, InMemoryOtpStore
from .sql import SqlAuditStore, SqlCredentialStore, SqlOtpStore

__all__ = [
    # Contracts
    "CredentialStore",
    "OtpStore",
    "DuplicateEmailError",
    # In-memory
    "InMemoryCredentialStore",
    "InMemoryOtpStore",
    # SQL
    "SqlCredentialStore",
    "SqlOtpStore",
    "SqlAuditStore",
]
