"""Authentication middleware for services that accept Firebase credentials."""

from __future__ import annotations

import hmac

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from firebase_jwt.auth import Auth
from firebase_jwt.config import get_settings
from firebase_jwt.exceptions import TokenVerificationError

_STATUS_BY_KIND: dict[str, int] = {
    "invalid_argument": 401,
    "token_expired": 401,
    "invalid_credential": 500,
    "internal_error": 503,
}


def _error_response(status_code: int, detail: str, code: str) -> JSONResponse:
    """Build SDK auth error response payload."""
    return JSONResponse(status_code=status_code, content={"detail": detail, "code": code})


def _extract_bearer_token(request: Request) -> str | None:
    """Extract bearer token from Authorization header."""
    authorization = request.headers.get("authorization", "").strip()
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if not hmac.compare_digest(scheme.lower(), "bearer"):
        return None
    stripped = token.strip()
    return stripped or None


class FirebaseAuthMiddleware(BaseHTTPMiddleware):
    """Verify a bearer ID token or a session cookie and inject its claims."""

    def __init__(
        self,
        app,
        auth: Auth | None = None,
        session_cookie_name: str | None = None,
    ) -> None:
        """Initialize middleware with an Auth facade and cookie name."""
        super().__init__(app)
        self._auth = auth or Auth()
        self._session_cookie_name = session_cookie_name or get_settings().session_cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        """Verify credentials and store decoded claims on request state."""
        id_token = _extract_bearer_token(request)
        session_cookie = request.cookies.get(self._session_cookie_name, "").strip()
        if id_token is None and not session_cookie:
            return _error_response(401, "Missing ID token or session cookie.", "argument-error")

        try:
            if id_token is not None:
                claims = await self._auth.verify_id_token(id_token)
            else:
                claims = await self._auth.verify_session_cookie(session_cookie)
        except TokenVerificationError as exc:
            return _error_response(_STATUS_BY_KIND[exc.kind], exc.detail, exc.code)

        request.state.user = claims
        return await call_next(request)
