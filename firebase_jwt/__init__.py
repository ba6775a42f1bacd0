"""Public SDK exports."""

from firebase_jwt.auth import Auth, TenantAwareAuth
from firebase_jwt.config import Settings, configure_structlog, get_settings
from firebase_jwt.dependencies import get_current_user, require_claims
from firebase_jwt.exceptions import HTTPFetchError, SDKError, TokenVerificationError
from firebase_jwt.middleware import FirebaseAuthMiddleware
from firebase_jwt.token_info import ID_TOKEN_INFO, SESSION_COOKIE_INFO, TokenInfo
from firebase_jwt.verifier import (
    TokenVerifier,
    create_id_token_verifier,
    create_session_cookie_verifier,
)

__all__ = [
    "ID_TOKEN_INFO",
    "SESSION_COOKIE_INFO",
    "Auth",
    "FirebaseAuthMiddleware",
    "HTTPFetchError",
    "SDKError",
    "Settings",
    "TenantAwareAuth",
    "TokenInfo",
    "TokenVerificationError",
    "TokenVerifier",
    "configure_structlog",
    "create_id_token_verifier",
    "create_session_cookie_verifier",
    "get_current_user",
    "get_settings",
    "require_claims",
]
