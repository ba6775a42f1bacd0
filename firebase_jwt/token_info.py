"""Static configuration for each kind of verifiable Firebase JWT."""

from __future__ import annotations

from dataclasses import dataclass

from firebase_jwt.types import KeySource

ALGORITHM_RS256 = "RS256"

# Audience of tokens minted by createCustomToken(); these must never be accepted here.
CUSTOM_TOKEN_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)

ID_TOKEN_CERT_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)
ID_TOKEN_ISSUER = "https://securetoken.google.com/"

SESSION_COOKIE_CERT_URL = "https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys"
SESSION_COOKIE_ISSUER = "https://session.firebase.google.com/"


@dataclass(frozen=True)
class TokenInfo:
    """User-facing names, issuer and key source for one token kind."""

    url: str
    verify_api_name: str
    jwt_name: str
    short_name: str
    expired_error_code: str
    issuer: str
    cert_url: str
    algorithm: str = ALGORITHM_RS256
    key_source: KeySource = "x509"

    @property
    def short_name_article(self) -> str:
        return "an" if self.short_name[:1].lower() in "aeiou" else "a"

    @property
    def docs_message(self) -> str:
        """Suffix pointing the caller at the retrieval docs for this token kind."""
        return (
            f" See {self.url} for details on how to retrieve "
            f"{self.short_name_article} {self.short_name}."
        )

    @property
    def project_match_message(self) -> str:
        return (
            f" Make sure the {self.short_name} comes from the same Firebase project "
            "as the service account used to authenticate this SDK."
        )


ID_TOKEN_INFO = TokenInfo(
    url="https://firebase.google.com/docs/auth/admin/verify-id-tokens",
    verify_api_name="verify_id_token()",
    jwt_name="Firebase ID token",
    short_name="ID token",
    expired_error_code="id-token-expired",
    issuer=ID_TOKEN_ISSUER,
    cert_url=ID_TOKEN_CERT_URL,
)

SESSION_COOKIE_INFO = TokenInfo(
    url="https://firebase.google.com/docs/auth/admin/manage-cookies",
    verify_api_name="verify_session_cookie()",
    jwt_name="Firebase session cookie",
    short_name="session cookie",
    expired_error_code="session-cookie-expired",
    issuer=SESSION_COOKIE_ISSUER,
    cert_url=SESSION_COOKIE_CERT_URL,
)
