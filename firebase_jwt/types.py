"""SDK data contract types."""

from __future__ import annotations

from typing import Any, Literal, TypedDict

ErrorKind = Literal[
    "invalid_argument",
    "invalid_credential",
    "token_expired",
    "internal_error",
]

KeySource = Literal["x509", "jwks"]

PublicKeySet = dict[str, str]


class DecodedToken(TypedDict):
    """Unverified JWT header and payload."""

    header: dict[str, Any]
    payload: dict[str, Any]


class FirebaseClaims(TypedDict, total=False):
    """Firebase-specific claims nested under the ``firebase`` key."""

    identities: dict[str, Any]
    sign_in_provider: str
    sign_in_second_factor: str
    second_factor_identifier: str
    tenant: str


class DecodedIdToken(TypedDict, total=False):
    """Verified ID token or session cookie claims with a normalized ``uid``."""

    aud: str
    auth_time: int
    email: str
    email_verified: bool
    exp: int
    firebase: FirebaseClaims
    iat: int
    iss: str
    phone_number: str
    picture: str
    sub: str
    uid: str
