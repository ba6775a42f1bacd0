"""Auth facades exposing ID token and session cookie verification."""

from __future__ import annotations

from typing import Any

import structlog

from firebase_jwt.client import CertClient
from firebase_jwt.config import Settings, get_settings
from firebase_jwt.exceptions import TokenVerificationError
from firebase_jwt.project import ProjectIdResolver
from firebase_jwt.types import DecodedIdToken
from firebase_jwt.verifier import (
    TokenVerifier,
    create_id_token_verifier,
    create_session_cookie_verifier,
)

MISMATCHING_TENANT_ID = "mismatching-tenant-id"

logger = structlog.get_logger(__name__)


class Auth:
    """Verify Firebase ID tokens and session cookies for one project."""

    def __init__(
        self,
        project_id: str | None = None,
        settings: Settings | None = None,
        client: CertClient | None = None,
        id_token_verifier: TokenVerifier | None = None,
        session_cookie_verifier: TokenVerifier | None = None,
    ) -> None:
        """Wire verifiers that share one HTTP client and project ID resolver."""
        self._settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or CertClient(
            timeout=self._settings.http_timeout_seconds,
            sdk_version=self._settings.sdk_version,
        )
        resolver = ProjectIdResolver(
            project_id=project_id, settings=self._settings, client=self._client
        )
        self._id_token_verifier = id_token_verifier or create_id_token_verifier(
            resolver, client=self._client
        )
        self._session_cookie_verifier = session_cookie_verifier or create_session_cookie_verifier(
            resolver, client=self._client
        )

    @property
    def emulator_enabled(self) -> bool:
        """Whether FIREBASE_AUTH_EMULATOR_HOST points verification at the emulator."""
        return self._settings.emulator_enabled

    async def verify_id_token(self, id_token: str) -> DecodedIdToken:
        """Verify a Firebase ID token and return its decoded claims."""
        return await self._verify(self._id_token_verifier, id_token)

    async def verify_session_cookie(self, session_cookie: str) -> DecodedIdToken:
        """Verify a Firebase session cookie and return its decoded claims."""
        return await self._verify(self._session_cookie_verifier, session_cookie)

    async def aclose(self) -> None:
        """Close the shared HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Auth:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        """Exit async context manager and close managed resources."""
        del exc_type, exc, tb
        await self.aclose()

    async def _verify(self, verifier: TokenVerifier, token: str) -> DecodedIdToken:
        try:
            return await verifier.verify_jwt(token, is_emulator=self.emulator_enabled)
        except TokenVerificationError as exc:
            event_logger = logger.error if exc.kind == "internal_error" else logger.warning
            event_logger(
                "token_verification_failed",
                token_kind=verifier.token_info.short_name,
                kind=exc.kind,
                code=exc.code,
            )
            raise


class TenantAwareAuth(Auth):
    """Auth facade that only accepts tokens issued for one tenant."""

    def __init__(self, tenant_id: str, **kwargs: Any) -> None:
        if not isinstance(tenant_id, str) or not tenant_id:
            raise ValueError("The tenant ID must be a non-empty string.")
        super().__init__(**kwargs)
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    async def verify_id_token(self, id_token: str) -> DecodedIdToken:
        """Verify an ID token and require it to belong to this tenant."""
        claims = await super().verify_id_token(id_token)
        self._check_tenant(claims)
        return claims

    async def verify_session_cookie(self, session_cookie: str) -> DecodedIdToken:
        """Verify a session cookie and require it to belong to this tenant."""
        claims = await super().verify_session_cookie(session_cookie)
        self._check_tenant(claims)
        return claims

    def _check_tenant(self, claims: DecodedIdToken) -> None:
        firebase = claims.get("firebase")
        tenant = firebase.get("tenant") if isinstance(firebase, dict) else None
        if tenant != self._tenant_id:
            raise TokenVerificationError(
                "invalid_argument",
                "Token tenant ID does not match the tenant ID of this TenantAwareAuth instance.",
                code=MISMATCHING_TENANT_ID,
            )
