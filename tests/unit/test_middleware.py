"""Unit tests for the Firebase credential middleware."""

from __future__ import annotations

import time

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from firebase_jwt.auth import Auth
from firebase_jwt.config import Settings
from firebase_jwt.middleware import FirebaseAuthMiddleware
from firebase_jwt.token_info import SESSION_COOKIE_ISSUER


def _build_app(auth: Auth, session_cookie_name: str | None = None) -> FastAPI:
    """Create app that echoes the verified claims."""
    app = FastAPI()
    app.add_middleware(FirebaseAuthMiddleware, auth=auth, session_cookie_name=session_cookie_name)

    @app.get("/protected")
    async def protected(request: Request) -> dict[str, object]:
        return {"user": request.state.user}

    return app


@pytest.fixture
def auth(cert_client, project_id) -> Auth:
    return Auth(project_id=project_id, settings=Settings(), client=cert_client)


@pytest.mark.asyncio
async def test_bearer_id_token_is_verified(auth, make_token) -> None:
    """Middleware verifies the bearer token and exposes its claims."""
    app = _build_app(auth)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/protected", headers={"authorization": f"Bearer {make_token()}"}
        )

    assert response.status_code == 200
    assert response.json()["user"]["uid"] == "abc"


@pytest.mark.asyncio
async def test_session_cookie_is_verified(auth, make_token) -> None:
    """Middleware falls back to the configured session cookie."""
    app = _build_app(auth, session_cookie_name="__session")
    cookie = make_token(issuer=SESSION_COOKIE_ISSUER)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
        cookies={"__session": cookie},
    ) as client:
        response = await client.get("/protected")

    assert response.status_code == 200
    assert response.json()["user"]["iss"] == SESSION_COOKIE_ISSUER + "project-id"


@pytest.mark.asyncio
async def test_missing_credentials_are_rejected(auth) -> None:
    """Requests without a bearer token or cookie never reach the route."""
    app = _build_app(auth)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/protected", headers={"authorization": "Basic abc"})

    assert response.status_code == 401
    assert response.json() == {
        "detail": "Missing ID token or session cookie.",
        "code": "argument-error",
    }


@pytest.mark.asyncio
async def test_expired_token_is_rejected(auth, make_token) -> None:
    """Expired tokens map to 401 with the token-kind specific code."""
    now = int(time.time())
    token = make_token({"iat": now - 7200, "exp": now - 3600})
    app = _build_app(auth)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/protected", headers={"authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "id-token-expired"


@pytest.mark.asyncio
async def test_key_endpoint_failure_is_service_unavailable(
    auth, make_token, cert_endpoint
) -> None:
    """Key fetch failures surface as 503 rather than an auth failure."""
    cert_endpoint.status_code = 500
    cert_endpoint.payload = "backend down"
    app = _build_app(auth)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/protected", headers={"authorization": f"Bearer {make_token()}"}
        )

    assert response.status_code == 503
    assert response.json()["code"] == "internal-error"


@pytest.mark.asyncio
async def test_missing_project_id_is_server_error(cert_client, make_token) -> None:
    """An unconfigured project is a server misconfiguration."""
    app = _build_app(Auth(settings=Settings(), client=cert_client))

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/protected", headers={"authorization": f"Bearer {make_token()}"}
        )

    assert response.status_code == 500
    assert response.json()["code"] == "invalid-credential"


@pytest.mark.asyncio
@pytest.mark.parametrize("kid", [{"x": 1}, [1]])
async def test_non_string_kid_is_unauthorized(auth, make_token, kid) -> None:
    """Structured kid headers are rejected as bad credentials."""
    app = _build_app(auth)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get(
            "/protected", headers={"authorization": f"Bearer {make_token(kid=kid)}"}
        )

    assert response.status_code == 401
    assert response.json()["code"] == "argument-error"
