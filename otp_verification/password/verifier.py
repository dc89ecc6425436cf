"""
Password Verifier
=================
Async-safe one-way password hashing and verification.

New hashes are Argon2id. Legacy bcrypt hashes are still accepted at
verification so imported accounts keep working.
"""

import asyncio
from typing import Optional

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from .hasher import get_cached_hasher

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordVerifier:
    """Hashes and checks passwords in the default executor."""

    def __init__(self, hasher: Optional[PasswordHasher] = None):
        self.hasher = hasher or get_cached_hasher()

    async def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Raises:
            ValueError: If the password is empty
        """
        if not password:
            raise ValueError("Password cannot be empty")

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.hasher.hash, password)

    async def matches(self, password: str, hash: str) -> bool:
        """
        Verify a password against an Argon2id or bcrypt hash.

        Returns:
            True if the password matches
        """
        if not password or not hash:
            return False

        loop = asyncio.get_event_loop()

        if hash.startswith("$argon2"):
            return await loop.run_in_executor(None, self._verify_argon2, password, hash)
        if hash.startswith(BCRYPT_PREFIXES):
            return await loop.run_in_executor(None, _verify_bcrypt, password, hash)
        return False

    def _verify_argon2(self, password: str, hash: str) -> bool:
        try:
            return self.hasher.verify(hash, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash: str) -> bool:
        """
        True if a hash should be recomputed on the next successful login.

        bcrypt hashes and Argon2 hashes with outdated parameters qualify.
        """
        if not hash or hash.startswith(BCRYPT_PREFIXES):
            return True
        if hash.startswith("$argon2"):
            try:
                return self.hasher.check_needs_rehash(hash)
            except InvalidHashError:
                return True
        return True


def _verify_bcrypt(password: str, hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hash.encode("utf-8"))
    except ValueError:
        return False
