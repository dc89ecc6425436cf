"""
Tests for signed session credentials.
"""

import base64
import json

import pytest

from otp_verification.session import PURPOSE_ACCESS, PURPOSE_OTP, SessionIssuer


class TestSessionIssuer:

    def test_issue_and_verify(self, sessions, clock):
        """A fresh credential verifies with its claims intact."""
        token = sessions.issue("a@x.com")
        claims = sessions.verify(token)

        assert claims.subject == "a@x.com"
        assert claims.purpose == PURPOSE_ACCESS
        assert claims.issued_at == int(clock.timestamp())
        assert claims.expires_at == claims.issued_at + 3600

    def test_ttl_override(self, sessions):
        token = sessions.issue("a@x.com", purpose=PURPOSE_OTP, ttl_seconds=900)
        claims = sessions.verify(token)

        assert claims.purpose == PURPOSE_OTP
        assert claims.expires_at - claims.issued_at == 900

    def test_tokens_are_unique(self, sessions):
        """Two credentials for the same subject differ."""
        assert sessions.issue("a@x.com") != sessions.issue("a@x.com")

    def test_expired(self, sessions, clock):
        token = sessions.issue("a@x.com", ttl_seconds=60)

        clock.advance(seconds=60)
        assert sessions.verify(token) is not None

        clock.advance(seconds=1)
        assert sessions.verify(token) is None

    def test_tampered_payload(self, sessions):
        """Changing the subject breaks the signature."""
        token = sessions.issue("a@x.com")
        payload_b64, signature = token.split(".")

        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
        payload["sub"] = "b@x.com"
        forged = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()

        assert sessions.verify(f"{forged}.{signature}") is None

    def test_wrong_secret(self, sessions, clock):
        other = SessionIssuer("other-secret", clock=clock.timestamp)
        assert other.verify(sessions.issue("a@x.com")) is None

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "!!!.abc", None])
    def test_garbage(self, sessions, token):
        assert sessions.verify(token) is None

    def test_is_valid_for(self, sessions):
        token = sessions.issue("a@x.com", purpose=PURPOSE_OTP)

        assert sessions.is_valid_for(token, "a@x.com")
        assert sessions.is_valid_for(token, "a@x.com", purpose=PURPOSE_OTP)
        assert not sessions.is_valid_for(token, "a@x.com", purpose=PURPOSE_ACCESS)
        assert not sessions.is_valid_for(token, "b@x.com")

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            SessionIssuer("")
