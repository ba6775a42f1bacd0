"""Unverified decoding of compact JWTs."""

from __future__ import annotations

from jose import jwt
from jose.exceptions import JWTError

from firebase_jwt.exceptions import TokenVerificationError
from firebase_jwt.types import DecodedToken


def decode_jwt(token: object) -> DecodedToken:
    """Split a compact JWT into header and payload without checking its signature."""
    if not isinstance(token, str):
        raise TokenVerificationError("invalid_argument", "The provided token must be a string.")

    if token.count(".") != 2:
        raise TokenVerificationError("invalid_argument", "Decoding token failed.")

    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenVerificationError("invalid_argument", "Decoding token failed.") from exc

    return {"header": dict(header), "payload": dict(payload)}
