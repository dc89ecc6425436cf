"""
Tests for password hashing and verification.
"""

import bcrypt
import pytest

from otp_verification.password import PasswordVerifier, build_hasher


class TestPasswordVerifier:

    @pytest.mark.asyncio
    async def test_hash_and_match(self, passwords):
        """Argon2id hashes verify only the original password."""
        hashed = await passwords.hash("s3cret")

        assert hashed.startswith("$argon2id$")
        assert await passwords.matches("s3cret", hashed)
        assert not await passwords.matches("wrong", hashed)

    @pytest.mark.asyncio
    async def test_hashes_are_salted(self, passwords):
        assert await passwords.hash("s3cret") != await passwords.hash("s3cret")

    @pytest.mark.asyncio
    async def test_empty_password_rejected(self, passwords):
        with pytest.raises(ValueError):
            await passwords.hash("")

    @pytest.mark.asyncio
    async def test_legacy_bcrypt(self, passwords):
        """bcrypt hashes from older accounts still verify."""
        legacy = bcrypt.hashpw(b"s3cret", bcrypt.gensalt(rounds=4)).decode()

        assert await passwords.matches("s3cret", legacy)
        assert not await passwords.matches("wrong", legacy)
        assert passwords.needs_rehash(legacy)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored", ["", "plaintext", "$argon2id$broken"])
    async def test_unusable_hash(self, passwords, stored):
        assert not await passwords.matches("s3cret", stored)

    @pytest.mark.asyncio
    async def test_needs_rehash_on_parameter_change(self, passwords):
        """Hashes made with weaker parameters are flagged."""
        hashed = await passwords.hash("s3cret")
        stronger = PasswordVerifier(build_hasher(time_cost=2, memory_cost=2048, parallelism=1))

        assert not passwords.needs_rehash(hashed)
        assert stronger.needs_rehash(hashed)
        assert await stronger.matches("s3cret", hashed)
