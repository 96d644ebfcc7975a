"""
Shared fixtures for Auth service tests.
"""

import base64
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

JWKS_URL = "https://idp.test/oauth2/v3/certs"
CLIENT_ID = "1234567890-test.apps.googleusercontent.com"
ISSUERS = ["https://accounts.google.com", "accounts.google.com"]
KID = "test-key-1"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _int_b64url(value: int) -> str:
    return b64url(value.to_bytes((value.bit_length() + 7) // 8, "big"))


class SigningKey:
    """RSA key pair with helpers to publish it as a JWK and sign tokens."""

    def __init__(self, kid: str):
        self.kid = kid
        self.private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.private_pem = self.private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )

    def jwk(self, **extra: Any) -> Dict[str, Any]:
        numbers = self.private_key.public_key().public_numbers()
        data = {
            "kty": "RSA",
            "kid": self.kid,
            "use": "sig",
            "alg": "RS256",
            "n": _int_b64url(numbers.n),
            "e": _int_b64url(numbers.e),
        }
        data.update(extra)
        return data

    def sign(self, claims: Dict[str, Any], headers: Optional[Dict[str, Any]] = None) -> str:
        header = {"kid": self.kid}
        header.update(headers or {})
        return jwt.encode(claims, self.private_pem, algorithm="RS256", headers=header)


@pytest.fixture(scope="session")
def signing_key() -> SigningKey:
    return SigningKey(KID)


@pytest.fixture(scope="session")
def other_key() -> SigningKey:
    """A key the provider never published."""
    return SigningKey("rogue-key")


@pytest.fixture
def now() -> int:
    return int(time.time())


@pytest.fixture
def google_claims(now) -> Dict[str, Any]:
    return {
        "iss": "https://accounts.google.com",
        "azp": CLIENT_ID,
        "aud": CLIENT_ID,
        "sub": "110169484474386276334",
        "email": "ada@example.com",
        "email_verified": True,
        "name": "Ada Lovelace",
        "picture": "https://lh3.googleusercontent.com/a/photo.jpg",
        "iat": now - 60,
        "exp": now + 3600,
    }


def compact(header: Dict[str, Any], payload: Dict[str, Any], signature: bytes = b"sig") -> str:
    """Assemble an unsigned compact token from raw parts."""
    return ".".join([
        b64url(json.dumps(header).encode()),
        b64url(json.dumps(payload).encode()),
        b64url(signature),
    ])


class JWKSEndpoint:
    """Fake key endpoint recording every request it serves."""

    def __init__(self, keys: List[Dict[str, Any]], headers: Optional[Dict[str, str]] = None):
        self.keys = keys
        self.headers = headers or {"Cache-Control": "public, max-age=19000, must-revalidate"}
        self.requests: List[httpx.Request] = []
        self.responder: Optional[Callable[[httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]]] = None

    def __call__(self, request: httpx.Request) -> Union[httpx.Response, Awaitable[httpx.Response]]:
        self.requests.append(request)
        if self.responder is not None:
            return self.responder(request)
        return httpx.Response(200, json={"keys": self.keys}, headers=self.headers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def jwks_endpoint(signing_key) -> JWKSEndpoint:
    return JWKSEndpoint([signing_key.jwk()])
