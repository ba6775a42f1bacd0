"""Unit tests for FastAPI claim dependencies."""

from __future__ import annotations

from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from firebase_jwt.dependencies import get_current_user, require_claims


def _build_app(user_payload: object) -> FastAPI:
    """Create app with verified claims injected on request state."""
    app = FastAPI()

    @app.middleware("http")
    async def inject_user(request, call_next):  # type: ignore[no-untyped-def]
        request.state.user = user_payload
        return await call_next(request)

    admin_dependency = Depends(require_claims(admin=True))

    @app.get("/me")
    async def me(user=Depends(get_current_user)):  # type: ignore[no-untyped-def]
        return {"uid": user["uid"]}

    @app.get("/admin")
    async def admin_only(user=admin_dependency):  # type: ignore[no-untyped-def]
        return {"uid": user["uid"]}

    return app


async def _get(app: FastAPI, path: str):  # type: ignore[no-untyped-def]
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        return await client.get(path)


async def test_current_user_returns_verified_claims() -> None:
    """Dependency returns the claims set by the middleware."""
    response = await _get(_build_app({"uid": "u-1", "sub": "u-1"}), "/me")

    assert response.status_code == 200
    assert response.json() == {"uid": "u-1"}


async def test_current_user_rejects_missing_claims() -> None:
    """Requests without verified claims are unauthorized."""
    response = await _get(_build_app(None), "/me")

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token."


async def test_require_claims_allows_matching_custom_claim() -> None:
    """Claim dependency allows tokens carrying the expected custom claim."""
    response = await _get(_build_app({"uid": "u-1", "admin": True}), "/admin")

    assert response.status_code == 200


async def test_require_claims_rejects_missing_custom_claim() -> None:
    """Claim dependency rejects tokens without the expected custom claim."""
    response = await _get(_build_app({"uid": "u-1"}), "/admin")

    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient claims"
