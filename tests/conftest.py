"""Shared fixtures: signing keys, token builders and stubbed key endpoints."""

from __future__ import annotations

import base64
import json
import time
from collections.abc import AsyncIterator, Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from jose import jwt

from firebase_jwt.client import CertClient
from firebase_jwt.config import get_settings
from firebase_jwt.token_info import ID_TOKEN_ISSUER

PROJECT_ID = "project-id"

_ENV_VARS = (
    "GOOGLE_CLOUD_PROJECT",
    "GCLOUD_PROJECT",
    "FIREBASE_AUTH_EMULATOR_HOST",
    "FIREBASE_JWT_PROJECT_ID",
    "FIREBASE_JWT_AUTH_EMULATOR_HOST",
    "FIREBASE_JWT_DISCOVER_PROJECT_ID",
)


@dataclass(frozen=True)
class KeyPair:
    """RSA signing material registered under one key ID."""

    kid: str
    private_pem: str
    public_pem: str
    cert_pem: str


def _generate_key_pair(kid: str) -> KeyPair:
    """Create an RSA keypair plus a self-signed certificate for its public key."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.example.com")])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .sign(private_key, hashes.SHA256())
    )
    cert_pem = certificate.public_bytes(serialization.Encoding.PEM).decode("utf-8")
    return KeyPair(kid=kid, private_pem=private_pem, public_pem=public_pem, cert_pem=cert_pem)


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    """Signing key the stubbed endpoints publish."""
    return _generate_key_pair("kid-1")


@pytest.fixture(scope="session")
def rogue_key_pair() -> KeyPair:
    """Signing key that no endpoint publishes."""
    return _generate_key_pair("kid-1")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep host project and emulator variables out of settings."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeClock:
    """Controllable monotonic clock for TTL tests."""

    def __init__(self) -> None:
        self.current = 0.0

    def now(self) -> float:
        """Return current synthetic monotonic time."""
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@dataclass
class CertEndpoint:
    """Stub key endpoint counting requests and serving a configurable response."""

    payload: Any
    headers: dict[str, str] = field(default_factory=lambda: {"cache-control": "max-age=3600"})
    status_code: int = 200
    calls: int = 0
    requested_urls: list[str] = field(default_factory=list)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        self.requested_urls.append(str(request.url))
        if isinstance(self.payload, str):
            return httpx.Response(
                status_code=self.status_code, text=self.payload, headers=self.headers
            )
        return httpx.Response(
            status_code=self.status_code, json=self.payload, headers=self.headers
        )


@pytest.fixture
def cert_endpoint(key_pair: KeyPair) -> CertEndpoint:
    """Endpoint publishing the test certificate under its key ID."""
    return CertEndpoint(payload={key_pair.kid: key_pair.cert_pem})


@pytest.fixture
async def cert_client(cert_endpoint: CertEndpoint) -> AsyncIterator[CertClient]:
    """CertClient whose requests are answered by the stub endpoint."""
    transport = httpx.MockTransport(cert_endpoint.handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        yield CertClient(http_client=http_client)


@pytest.fixture
def project_id() -> str:
    return PROJECT_ID


TokenBuilder = Callable[..., str]


@pytest.fixture
def make_token(key_pair: KeyPair) -> TokenBuilder:
    """Build RS256 tokens shaped like Firebase ID tokens."""

    def build(
        claims: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
        private_pem: str | None = None,
        issuer: str = ID_TOKEN_ISSUER,
        kid: str | None = key_pair.kid,
        drop: tuple[str, ...] = (),
    ) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "aud": PROJECT_ID,
            "iss": issuer + PROJECT_ID,
            "sub": "abc",
            "iat": now,
            "exp": now + 3600,
            "auth_time": now,
            "firebase": {"identities": {}, "sign_in_provider": "custom"},
        }
        payload.update(claims or {})
        for name in drop:
            payload.pop(name, None)
        token_headers: dict[str, Any] = {"kid": kid} if kid is not None else {}
        token_headers.update(headers or {})
        return jwt.encode(
            payload,
            private_pem or key_pair.private_pem,
            algorithm="RS256",
            headers=token_headers,
        )

    return build


def _b64url_json(value: dict[str, Any]) -> str:
    raw = json.dumps(value, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


@pytest.fixture
def make_unsigned_token() -> TokenBuilder:
    """Build ``alg: none`` tokens like the ones the Auth emulator issues."""

    def build(claims: dict[str, Any] | None = None, issuer: str = ID_TOKEN_ISSUER) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "aud": PROJECT_ID,
            "iss": issuer + PROJECT_ID,
            "sub": "emulated-user",
            "iat": now,
            "exp": now + 3600,
        }
        payload.update(claims or {})
        header = {"alg": "none", "typ": "JWT"}
        return f"{_b64url_json(header)}.{_b64url_json(payload)}."

    return build
