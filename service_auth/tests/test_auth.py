"""
Tests for Auth service.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from service_auth.app.jwks.client import JWKSClient
from service_auth.app.main import AuthService
from service_auth.app.validation.claims import ClaimValidator
from service_auth.app.validation.signature import SignatureVerifier
from service_auth.app.validation.token_validator import TokenValidator

from conftest import CLIENT_ID, ISSUERS, JWKS_URL


@pytest.fixture
def config():
    return get_config("auth", 3333, audience=CLIENT_ID, jwks_url=JWKS_URL)


@pytest.fixture
def service(config, jwks_endpoint):
    token_validator = TokenValidator(
        JWKSClient(JWKS_URL, jwks_endpoint.client()),
        ClaimValidator(CLIENT_ID, ISSUERS),
        SignatureVerifier(["RS256"]),
    )
    return AuthService(config, token_validator=token_validator)


@pytest.fixture
def client(service):
    """Create test client."""
    return TestClient(service.app)


def test_root_endpoint(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "auth"
    assert data["version"] == "1.0.0"


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "auth"
    assert data["status"] == "ok"
    assert data["dependencies"] == {"jwks": "ok"}


def test_health_check_degraded_when_jwks_down(client, jwks_endpoint):
    jwks_endpoint.responder = lambda request: httpx.Response(503)

    data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["dependencies"] == {"jwks": "error"}


def test_login_with_google_success(client, signing_key, google_claims):
    response = client.post("/login-with-google", json={"token": signing_key.sign(google_claims)})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Login successful"
    assert data["user"] == {
        "id": google_claims["sub"],
        "email": google_claims["email"],
        "name": google_claims["name"],
        "picture": google_claims["picture"],
        "emailVerified": True,
    }


@pytest.mark.parametrize("body", [{}, {"token": ""}])
def test_login_with_google_requires_token(client, body):
    response = client.post("/login-with-google", json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Token is required"}


def test_login_with_google_rejects_expired_token(client, signing_key, google_claims, now):
    google_claims["exp"] = now - 60

    response = client.post("/login-with-google", json={"token": signing_key.sign(google_claims)})

    assert response.status_code == 401
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "CLAIM_EXPIRED"


def test_login_with_google_rejects_unknown_key(client, other_key, google_claims):
    response = client.post("/login-with-google", json={"token": other_key.sign(google_claims)})

    assert response.status_code == 401
    assert response.json()["code"] == "KEY_NOT_FOUND"


def test_verify_endpoint_returns_result(client, signing_key, google_claims):
    response = client.post("/auth/verify", json={"token": signing_key.sign(google_claims)})

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["claims"]["sub"] == google_claims["sub"]
    assert data["error"] is None


def test_verify_endpoint_reports_error(client):
    response = client.post("/auth/verify", json={"token": "a.b"})

    data = response.json()
    assert data["valid"] is False
    assert data["error"] == "MALFORMED_TOKEN"
    assert data["claims"] is None


def test_cors_preflight(client):
    response = client.options(
        "/login-with-google",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_request_id_header_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_metrics_endpoint(client):
    client.get("/")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_lifespan_owns_http_client(config):
    service = AuthService(config)

    with TestClient(service.app):
        assert isinstance(service.token_validator, TokenValidator)
        assert service.token_validator.claim_validator.audience == CLIENT_ID

    assert service.token_validator is None
