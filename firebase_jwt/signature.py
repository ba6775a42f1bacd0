"""Signature verification against fetched public keys or the Auth emulator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from firebase_jwt.cache import JwksKeyFetcher, KeyFetcher, TTLStrategy, UrlKeyFetcher
from firebase_jwt.client import CertClient
from firebase_jwt.exceptions import TokenVerificationError
from firebase_jwt.token_info import ALGORITHM_RS256

NO_MATCHING_KID = "no-matching-kid"
INVALID_SIGNATURE = "invalid-signature"


class SignatureVerifier(Protocol):
    """Capability that accepts or rejects the signature of a compact JWT."""

    async def verify(self, token: str) -> None:
        """Return normally when the signature is acceptable, raise otherwise."""
        ...


class PublicKeySignatureVerifier:
    """Verify signatures with the public key selected by the token ``kid``."""

    def __init__(self, key_fetcher: KeyFetcher, algorithm: str = ALGORITHM_RS256) -> None:
        if key_fetcher is None:
            raise ValueError("The provided key fetcher is not an object or null.")
        if not isinstance(algorithm, str) or not algorithm:
            raise ValueError("The provided JWT algorithm is an empty string.")
        self._key_fetcher = key_fetcher
        self._algorithm = algorithm

    @classmethod
    def with_cert_url(
        cls,
        cert_url: str,
        algorithm: str = ALGORITHM_RS256,
        client: CertClient | None = None,
        ttl_strategy: TTLStrategy | None = None,
        now: Callable[[], float] | None = None,
    ) -> PublicKeySignatureVerifier:
        """Build a verifier backed by a ``{kid: certificate}`` endpoint."""
        fetcher = UrlKeyFetcher(cert_url, client=client, ttl_strategy=ttl_strategy, now=now)
        return cls(fetcher, algorithm)

    @classmethod
    def with_jwks_url(
        cls,
        jwks_url: str,
        algorithm: str = ALGORITHM_RS256,
        client: CertClient | None = None,
        ttl_strategy: TTLStrategy | None = None,
        now: Callable[[], float] | None = None,
    ) -> PublicKeySignatureVerifier:
        """Build a verifier backed by a JWKS endpoint."""
        fetcher = JwksKeyFetcher(
            jwks_url, client=client, ttl_strategy=ttl_strategy, now=now, algorithm=algorithm
        )
        return cls(fetcher, algorithm)

    async def verify(self, token: str) -> None:
        """Verify the token signature and registered time claims."""
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise TokenVerificationError("invalid_argument", "Decoding token failed.") from exc

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise _no_matching_kid()
        public_keys = await self._key_fetcher.fetch_public_keys()
        if kid not in public_keys:
            raise _no_matching_kid()
        _check_token(token, public_keys[kid], algorithms=[self._algorithm])


class EmulatorSignatureVerifier:
    """Accept any signature; tokens minted by the Auth emulator are unsigned."""

    async def verify(self, token: str) -> None:
        """Skip cryptographic checks but still enforce ``exp``/``nbf``/``iat``."""
        _check_token(token, "", algorithms=None, verify_signature=False)


def _no_matching_kid() -> TokenVerificationError:
    return TokenVerificationError(
        "invalid_argument",
        "The provided token has a \"kid\" claim which does not correspond to a "
        "known public key.",
        code=NO_MATCHING_KID,
    )


def _token_expired() -> TokenVerificationError:
    return TokenVerificationError(
        "token_expired",
        "The provided token has expired. Get a fresh token from your client app and "
        "try again.",
    )


def _decode(token: str, key: str, algorithms: list[str] | None, verify_signature: bool) -> None:
    jwt.decode(
        token,
        key,
        algorithms=algorithms,
        options={"verify_signature": verify_signature, "verify_aud": False},
    )


def _is_expired(token: str) -> bool:
    """Return True when the registered claims alone show the token has expired."""
    try:
        _decode(token, "", algorithms=None, verify_signature=False)
    except ExpiredSignatureError:
        return True
    except (JWTError, KeyError):
        return False
    return False


def _check_token(
    token: str,
    key: str,
    algorithms: list[str] | None,
    verify_signature: bool = True,
) -> None:
    """Run the library verification step, mapping failures to SDK errors.

    jose checks the signature before ``exp``, so a rejected signature is
    classified again from the claims; an expired token reports expiry
    whether or not its signature holds.
    """
    try:
        _decode(token, key, algorithms, verify_signature)
    except ExpiredSignatureError as exc:
        raise _token_expired() from exc
    except (JWTError, KeyError) as exc:
        if verify_signature and _is_expired(token):
            raise _token_expired() from exc
        # jose reads header["alg"] even when signature checks are disabled.
        raise TokenVerificationError(
            "invalid_argument",
            "The provided token has invalid signature.",
            code=INVALID_SIGNATURE,
        ) from exc
