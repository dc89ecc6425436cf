"""
Tests for the HTTP surface.
"""

import pytest
from fastapi.testclient import TestClient

from otp_verification.app import build_app
from otp_verification.database import create_async_engine, create_session_factory
from otp_verification.stores import SqlAuditStore


@pytest.fixture
def client(orchestrator):
    with TestClient(build_app(orchestrator, service_name="test-service")) as client:
        yield client


def _register(client, email="a@x.com", password="p"):
    return client.post("/v1/auth/register", json={
        "email": email,
        "password": password,
        "first_name": "A",
        "last_name": "B",
    })


class TestAuthRoutes:

    def test_register(self, client):
        response = _register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["token"] is None
        assert body["user"]["email"] == "a@x.com"
        assert body["user"]["email_verified"] is False
        assert "password_hash" not in body["user"]

    def test_register_duplicate(self, client):
        _register(client)
        response = _register(client)

        assert response.status_code == 409
        assert response.json()["code"] == "ALREADY_EXISTS"
        assert response.json()["success"] is False

    def test_request_otp_unknown_user(self, client):
        response = client.post("/v1/auth/request-otp", json={"email": "nobody@x.com"})

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_full_flow(self, client, sink):
        """Register, request, verify and log in over HTTP."""
        _register(client)

        response = client.post("/v1/auth/request-otp", json={"email": "a@x.com"})
        assert response.status_code == 200
        issued = response.json()
        code = sink.last_code("a@x.com")
        assert issued["email"] == "a@x.com"
        assert issued["token"]
        assert set(issued) == {"message", "success", "email", "token", "expires_at"}

        response = client.post("/v1/auth/verify-otp", json={"email": "a@x.com", "otp": code})
        assert response.status_code == 200
        assert response.json()["user"]["email_verified"] is True
        assert response.json()["token"]

        response = client.post("/v1/auth/login", json={"email": "a@x.com", "password": "p"})
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"

    def test_login_not_verified(self, client):
        _register(client)
        response = client.post("/v1/auth/login", json={"email": "a@x.com", "password": "p"})

        assert response.status_code == 403
        assert response.json()["code"] == "NOT_VERIFIED"

    def test_login_wrong_password(self, client):
        _register(client)
        response = client.post("/v1/auth/login", json={"email": "a@x.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_CREDENTIALS"

    def test_verify_invalid_otp(self, client):
        _register(client)
        response = client.post("/v1/auth/verify-otp", json={"email": "a@x.com", "otp": "12ab"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "OTP format is invalid",
            "code": "INVALID_OTP",
        }

    def test_delivery_failure(self, client, sink):
        _register(client)
        sink.fail_otp = True

        response = client.post("/v1/auth/request-otp", json={"email": "a@x.com"})

        assert response.status_code == 502
        assert response.json()["code"] == "DELIVERY_FAILURE"

    def test_validation_error(self, client):
        response = client.post("/v1/auth/register", json={"email": "a@x.com"})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unexpected_error(self, client, user_store):
        """Store failures render as a generic 500."""
        async def unavailable(email):
            raise ConnectionError("db down")

        user_store.find_by_email = unavailable
        response = client.post("/v1/auth/login", json={"email": "a@x.com", "password": "p"})

        assert response.status_code == 500
        assert response.json()["code"] == "UNEXPECTED"
        assert "db down" not in response.text


class TestHealthRoutes:

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness_without_database(self, client):
        assert client.get("/health/ready").status_code == 200

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service"] == "test-service"


class TestRequestContext:

    def test_forwarded_client_ip_is_audited(self, client, audit):
        """The first X-Forwarded-For hop is recorded on the audit event."""
        _register(client)
        audit.flush()

        client.post(
            "/v1/auth/login",
            json={"email": "a@x.com", "password": "wrong"},
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        assert audit.flush()[-1].ip_address == "203.0.113.7"

    def test_peer_address_without_forwarding(self, client, audit):
        _register(client)

        assert audit.flush()[-1].ip_address == "testclient"

    def test_audit_chain_resumes_on_startup(self, orchestrator, audit, tmp_path):
        """Startup seeds the logger with the last stored hash."""
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/audit.db")
        store = SqlAuditStore(create_session_factory(engine))
        audit.sink = store.append
        app = build_app(orchestrator, engine=engine, create_tables=True, audit_store=store)

        with TestClient(app) as client:
            _register(client)
        head = audit.head
        audit.set_previous_hash(None)

        with TestClient(app) as client:
            assert audit.head == head
            _register(client, email="b@x.com")

        assert audit.flush()[-1].previous_hash == head
