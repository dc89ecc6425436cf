"""
Tests for code generation and OTP record state.
"""

import random
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from otp_verification.otp import CodeGenerator, OtpRecord, OtpState


class TestCodeGenerator:

    def test_generates_six_ascii_digits(self):
        """Default codes are exactly six ASCII digits."""
        generator = CodeGenerator()

        for _ in range(100):
            code = generator.generate()
            assert len(code) == 6
            assert all(c in "0123456789" for c in code)

    def test_custom_length(self):
        generator = CodeGenerator(length=8)

        assert len(generator.generate()) == 8
        assert generator.is_well_formed("12345678")
        assert not generator.is_well_formed("123456")

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            CodeGenerator(length=0)

    def test_digits_are_roughly_uniform(self):
        """Each digit shows up close to a tenth of the time."""
        generator = CodeGenerator()
        counts = Counter("".join(generator.generate() for _ in range(10000)))

        assert set(counts) == set("0123456789")
        for digit, count in counts.items():
            assert 5500 <= count <= 6500, digit

    def test_leading_zeros_are_kept(self):
        """Codes are strings, so a zero in front survives."""
        generator = CodeGenerator()
        codes = [generator.generate() for _ in range(2000)]

        assert any(code.startswith("0") for code in codes)
        assert all(len(code) == 6 for code in codes)

    def test_injected_rng_is_deterministic(self):
        """Seeded generators produce the same sequence."""
        first = CodeGenerator(rng=random.Random(42))
        second = CodeGenerator(rng=random.Random(42))

        assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]

    @pytest.mark.parametrize("code", ["123456", "000000", "999999"])
    def test_well_formed(self, code):
        assert CodeGenerator().is_well_formed(code)

    @pytest.mark.parametrize("code", [
        "",
        "12345",
        "1234567",
        "12a456",
        "123 56",
        "123456\n",
        "١٢٣٤٥٦",
        None,
        123456,
    ])
    def test_malformed(self, code):
        """Wrong length, non-digits, non-ASCII digits and non-strings are rejected."""
        assert not CodeGenerator().is_well_formed(code)


class TestOtpRecord:

    def _record(self, **kwargs):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        defaults = dict(
            user_id=1,
            code="123456",
            token="t",
            expires_at=now + timedelta(minutes=15),
            created_at=now,
        )
        defaults.update(kwargs)
        return OtpRecord(**defaults), now

    def test_active(self):
        record, now = self._record()
        assert record.state(now) == OtpState.ACTIVE

    def test_expiry_is_strict(self):
        """A record is still valid at its exact expiry instant."""
        record, now = self._record()

        assert not record.is_expired(record.expires_at)
        assert record.is_expired(record.expires_at + timedelta(seconds=1))
        assert record.state(now + timedelta(minutes=16)) == OtpState.EXPIRED

    def test_consumed_wins(self):
        """A used record reports consumed even after expiry."""
        record, now = self._record(is_used=True)
        assert record.state(now + timedelta(hours=1)) == OtpState.CONSUMED

    def test_attempts_exhausted(self):
        record, now = self._record(attempt_count=3)

        assert record.state(now) == OtpState.ATTEMPTS_EXHAUSTED
        assert record.state(now, max_attempts=5) == OtpState.ACTIVE
