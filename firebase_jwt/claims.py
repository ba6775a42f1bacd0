"""Ordered claim checks applied before any signature verification."""

from __future__ import annotations

from typing import Any

from firebase_jwt.exceptions import TokenVerificationError
from firebase_jwt.token_info import CUSTOM_TOKEN_AUDIENCE, TokenInfo
from firebase_jwt.types import DecodedToken

MAX_SUBJECT_LENGTH = 128


class ClaimsValidator:
    """Validate header and payload claims for one token kind, first failure wins."""

    def __init__(self, token_info: TokenInfo) -> None:
        self._info = token_info

    def validate(
        self, decoded: DecodedToken, project_id: str | None, is_emulator: bool = False
    ) -> None:
        """Raise TokenVerificationError for the first rule the token violates."""
        if not isinstance(project_id, str) or not project_id:
            raise TokenVerificationError(
                "invalid_credential",
                "Must initialize app with a cert credential or set your Firebase project ID "
                "as the GOOGLE_CLOUD_PROJECT environment variable to call "
                f"{self._info.verify_api_name}.",
            )

        error_message = self._first_violation(decoded, project_id, is_emulator)
        if error_message is not None:
            raise TokenVerificationError("invalid_argument", error_message)

    def _first_violation(
        self, decoded: DecodedToken, project_id: str, is_emulator: bool
    ) -> str | None:
        info = self._info
        header = decoded["header"]
        payload = decoded["payload"]
        docs = info.docs_message

        if not is_emulator and "kid" not in header:
            return self._missing_kid_message(header, payload) + docs
        if not is_emulator and header.get("alg") != info.algorithm:
            return (
                f'{info.jwt_name} has incorrect algorithm. Expected "{info.algorithm}" '
                f'but got "{header.get("alg")}".' + docs
            )
        if payload.get("aud") != project_id:
            return (
                f'{info.jwt_name} has incorrect "aud" (audience) claim. Expected '
                f'"{project_id}" but got "{payload.get("aud")}".'
                + info.project_match_message
                + docs
            )
        expected_issuer = info.issuer + project_id
        if payload.get("iss") != expected_issuer:
            return (
                f'{info.jwt_name} has incorrect "iss" (issuer) claim. Expected '
                f'"{expected_issuer}" but got "{payload.get("iss")}".'
                + info.project_match_message
                + docs
            )

        subject = payload.get("sub")
        if not isinstance(subject, str):
            return f'{info.jwt_name} has no "sub" (subject) claim.' + docs
        if subject == "":
            return f'{info.jwt_name} has an empty string "sub" (subject) claim.' + docs
        if len(subject) > MAX_SUBJECT_LENGTH:
            return (
                f'{info.jwt_name} has "sub" (subject) claim longer than '
                f"{MAX_SUBJECT_LENGTH} characters." + docs
            )
        return None

    def _missing_kid_message(self, header: dict[str, Any], payload: dict[str, Any]) -> str:
        info = self._info
        expects = f"{info.verify_api_name} expects {info.short_name_article} {info.short_name}"
        if payload.get("aud") == CUSTOM_TOKEN_AUDIENCE:
            return f"{expects}, but was given a custom token."
        if _is_legacy_custom_token(header, payload):
            return f"{expects}, but was given a legacy custom token."
        return f'{info.jwt_name} has no "kid" claim.'


def _is_legacy_custom_token(header: dict[str, Any], payload: dict[str, Any]) -> bool:
    """Detect pre-v3 custom tokens: HS256 with ``v == 0`` and a ``d.uid`` claim."""
    version = payload.get("v")
    data = payload.get("d")
    return (
        header.get("alg") == "HS256"
        and version == 0
        and not isinstance(version, bool)
        and isinstance(data, dict)
        and "uid" in data
    )
