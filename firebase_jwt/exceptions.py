"""SDK exception hierarchy."""

from __future__ import annotations

from typing import Any

from firebase_jwt.types import ErrorKind

DEFAULT_CODES: dict[str, str] = {
    "invalid_argument": "argument-error",
    "invalid_credential": "invalid-credential",
    "token_expired": "token-expired",
    "internal_error": "internal-error",
}


class SDKError(Exception):
    """Base class for all SDK-specific exceptions."""


class HTTPFetchError(SDKError):
    """Raised when a remote fetch fails or returns an unusable body."""

    def __init__(
        self,
        detail: str,
        status_code: int | None = None,
        body: str = "",
        data: Any = None,
    ) -> None:
        """Initialize with HTTP status and raw body context."""
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.body = body
        self.data = data


class TokenVerificationError(SDKError):
    """Raised when an ID token or session cookie cannot be verified."""

    def __init__(self, kind: ErrorKind, detail: str, code: str | None = None) -> None:
        """Initialize with error kind, user-facing detail and machine-readable code."""
        super().__init__(detail)
        self.kind = kind
        self.detail = detail
        self.code = code or DEFAULT_CODES[kind]

    def __repr__(self) -> str:
        return f"TokenVerificationError(kind={self.kind!r}, code={self.code!r})"
