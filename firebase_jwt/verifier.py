"""Verification of Firebase ID tokens and session cookies."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from firebase_jwt.cache import TTLStrategy, is_http_url
from firebase_jwt.claims import ClaimsValidator
from firebase_jwt.client import CertClient
from firebase_jwt.decoder import decode_jwt
from firebase_jwt.exceptions import TokenVerificationError
from firebase_jwt.project import ProjectIdResolver, ProjectIdSource, resolve_project_id
from firebase_jwt.signature import (
    INVALID_SIGNATURE,
    NO_MATCHING_KID,
    EmulatorSignatureVerifier,
    PublicKeySignatureVerifier,
    SignatureVerifier,
)
from firebase_jwt.token_info import ID_TOKEN_INFO, SESSION_COOKIE_INFO, TokenInfo
from firebase_jwt.types import DecodedIdToken, DecodedToken


class TokenVerifier:
    """Decode, validate and verify one kind of Firebase JWT.

    Every call is a single pass: resolve the project ID, decode the token,
    check its claims in a fixed order, then verify its signature. The first
    failing step raises a ``TokenVerificationError`` and nothing is retried.
    """

    def __init__(
        self,
        token_info: TokenInfo,
        project_id_resolver: ProjectIdResolver | ProjectIdSource | None = None,
        signature_verifier: SignatureVerifier | None = None,
        client: CertClient | None = None,
        ttl_strategy: TTLStrategy | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        _validate_token_info(token_info)
        self._info = token_info
        self._claims_validator = ClaimsValidator(token_info)
        self._project_id_resolver = project_id_resolver or ProjectIdResolver()
        self._signature_verifier = signature_verifier or _public_key_verifier(
            token_info, client=client, ttl_strategy=ttl_strategy, now=now
        )
        self._emulator_verifier = EmulatorSignatureVerifier()

    @property
    def token_info(self) -> TokenInfo:
        return self._info

    async def verify_jwt(self, token: Any, is_emulator: bool = False) -> DecodedIdToken:
        """Verify a compact JWT and return its claims with ``uid`` set from ``sub``."""
        if not isinstance(token, str):
            raise TokenVerificationError(
                "invalid_argument",
                f"First argument to {self._info.verify_api_name} must be a "
                f"{self._info.jwt_name} string.",
            )

        project_id = await resolve_project_id(self._project_id_resolver)
        decoded = self._decode(token)
        self._claims_validator.validate(decoded, project_id, is_emulator=is_emulator)

        verifier = self._emulator_verifier if is_emulator else self._signature_verifier
        try:
            await verifier.verify(token)
        except TokenVerificationError as exc:
            raise self._token_kind_error(exc) from exc

        claims: dict[str, Any] = dict(decoded["payload"])
        claims["uid"] = claims["sub"]
        return claims  # type: ignore[return-value]

    def _decode(self, token: str) -> DecodedToken:
        try:
            return decode_jwt(token)
        except TokenVerificationError as exc:
            info = self._info
            raise TokenVerificationError(
                "invalid_argument",
                f"Decoding {info.jwt_name} failed. Make sure you passed the entire string JWT "
                f"which represents {info.short_name_article} {info.short_name}."
                + info.docs_message,
            ) from exc

    def _token_kind_error(self, error: TokenVerificationError) -> TokenVerificationError:
        """Reword a signature-step error for this token kind."""
        info = self._info
        if error.kind == "internal_error":
            return error
        if error.kind == "token_expired":
            return TokenVerificationError(
                "token_expired",
                f"{info.jwt_name} has expired. Get a fresh {info.short_name} from your client "
                f"app and try again (auth/{info.expired_error_code})." + info.docs_message,
                code=info.expired_error_code,
            )
        if error.code == NO_MATCHING_KID:
            return TokenVerificationError(
                "invalid_argument",
                f'{info.jwt_name} has "kid" claim which does not correspond to a known public '
                f"key. Most likely the {info.short_name} is expired, so get a fresh token from "
                "your client app and try again.",
            )
        if error.code == INVALID_SIGNATURE:
            return TokenVerificationError(
                "invalid_argument", f"{info.jwt_name} has invalid signature." + info.docs_message
            )
        return TokenVerificationError("invalid_argument", error.detail)


def _public_key_verifier(
    token_info: TokenInfo,
    client: CertClient | None,
    ttl_strategy: TTLStrategy | None,
    now: Callable[[], float] | None,
) -> PublicKeySignatureVerifier:
    if token_info.key_source == "jwks":
        return PublicKeySignatureVerifier.with_jwks_url(
            token_info.cert_url,
            token_info.algorithm,
            client=client,
            ttl_strategy=ttl_strategy,
            now=now,
        )
    return PublicKeySignatureVerifier.with_cert_url(
        token_info.cert_url,
        token_info.algorithm,
        client=client,
        ttl_strategy=ttl_strategy,
        now=now,
    )


def _validate_token_info(token_info: TokenInfo) -> None:
    """Reject verifier configurations that could never verify a real token."""
    if not isinstance(token_info, TokenInfo):
        raise ValueError("The provided JWT information is not a TokenInfo instance.")
    if not is_http_url(token_info.cert_url):
        raise ValueError("The provided public client certificate URL is an invalid URL.")
    if not isinstance(token_info.algorithm, str) or not token_info.algorithm:
        raise ValueError("The provided JWT algorithm is an empty string.")
    if not is_http_url(token_info.issuer):
        raise ValueError("The provided JWT issuer is an invalid URL.")
    if not is_http_url(token_info.url):
        raise ValueError("The provided JWT verification documentation URL is invalid.")
    if token_info.key_source not in {"x509", "jwks"}:
        raise ValueError("The provided JWT key source must be 'x509' or 'jwks'.")

    required_names = {
        "verify_api_name": "The JWT verify API name must be a non-empty string.",
        "jwt_name": "The JWT public full name must be a non-empty string.",
        "short_name": "The JWT public short name must be a non-empty string.",
        "expired_error_code": "The JWT expiration error code must be a non-empty string.",
    }
    for field_name, message in required_names.items():
        value = getattr(token_info, field_name)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(message)


def create_id_token_verifier(
    project_id_resolver: ProjectIdResolver | ProjectIdSource | None = None,
    client: CertClient | None = None,
    **kwargs: Any,
) -> TokenVerifier:
    """Create a verifier for Firebase ID tokens."""
    return TokenVerifier(
        ID_TOKEN_INFO, project_id_resolver=project_id_resolver, client=client, **kwargs
    )


def create_session_cookie_verifier(
    project_id_resolver: ProjectIdResolver | ProjectIdSource | None = None,
    client: CertClient | None = None,
    **kwargs: Any,
) -> TokenVerifier:
    """Create a verifier for Firebase session cookies."""
    return TokenVerifier(
        SESSION_COOKIE_INFO, project_id_resolver=project_id_resolver, client=client, **kwargs
    )
