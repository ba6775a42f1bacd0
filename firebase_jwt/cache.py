"""Public signing key fetchers with TTL-based reuse."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, Protocol
from urllib.parse import urlparse

import structlog
from jose import jwk
from jose.exceptions import JWKError

from firebase_jwt.client import CertClient
from firebase_jwt.exceptions import HTTPFetchError, TokenVerificationError
from firebase_jwt.types import PublicKeySet

SIX_HOURS_IN_SECONDS = 6 * 60 * 60

TTLStrategy = Callable[[Mapping[str, str]], float | None]

logger = structlog.get_logger(__name__)


def cache_control_ttl(headers: Mapping[str, str]) -> float | None:
    """Derive a TTL from the ``max-age`` directive of a Cache-Control header.

    ``max-age`` is delta-seconds: anything but a non-negative integer leaves
    the keys without a TTL so the next lookup refetches.
    """
    header = headers.get("cache-control")
    if not header:
        return None
    ttl: float | None = None
    for directive in header.split(","):
        name, _, value = directive.strip().partition("=")
        if name.strip().lower() != "max-age":
            continue
        seconds = value.strip().strip('"')
        ttl = float(seconds) if seconds.isascii() and seconds.isdigit() else None
    return ttl


def fixed_ttl(seconds: float) -> TTLStrategy:
    """Return a TTL strategy that ignores response headers."""

    def strategy(headers: Mapping[str, str]) -> float | None:
        del headers
        return seconds

    return strategy


def is_http_url(value: object) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    if not isinstance(value, str) or not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class KeyFetcher(Protocol):
    """Source of public keys indexed by key ID."""

    async def fetch_public_keys(self) -> PublicKeySet:
        """Return the current public key set."""
        ...


class _CachingKeyFetcher(ABC):
    """Cache-aside key fetcher; subclasses define how a response maps to keys."""

    def __init__(
        self,
        url: str,
        client: CertClient | None = None,
        ttl_strategy: TTLStrategy | None = None,
        now: Callable[[], float] | None = None,
    ) -> None:
        if not is_http_url(url):
            raise ValueError("The provided public client certificate URL is an invalid URL.")
        self._url = url
        self._client = client or CertClient()
        self._ttl_strategy = ttl_strategy or self.default_ttl_strategy()
        self._now = now or time.monotonic
        self._public_keys: PublicKeySet | None = None
        self._expires_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def url(self) -> str:
        return self._url

    @staticmethod
    @abstractmethod
    def default_ttl_strategy() -> TTLStrategy:
        """Return the TTL policy used when none is injected."""

    async def fetch_public_keys(self) -> PublicKeySet:
        """Return cached keys, refreshing them first when stale."""
        public_keys = self._fresh_keys()
        if public_keys is not None:
            return public_keys

        async with self._lock:
            public_keys = self._fresh_keys()
            if public_keys is not None:
                return public_keys
            return await self._refresh()

    def _fresh_keys(self) -> PublicKeySet | None:
        """Return cached keys only while they are still within their TTL."""
        if self._public_keys is None or self._expires_at is None:
            return None
        if self._now() >= self._expires_at:
            return None
        return self._public_keys

    async def _refresh(self) -> PublicKeySet:
        try:
            response = await self._client.get(self._url)
        except HTTPFetchError as exc:
            logger.warning(
                "public_keys_fetch_failed", url=self._url, status_code=exc.status_code
            )
            raise TokenVerificationError(
                "internal_error", _fetch_error_message(exc.data, exc.body or exc.detail)
            ) from exc

        if not isinstance(response.data, dict) or response.data.get("error"):
            logger.warning(
                "public_keys_fetch_failed", url=self._url, status_code=response.status_code
            )
            raise TokenVerificationError(
                "internal_error", _fetch_error_message(response.data, response.text)
            )

        public_keys = self._parse_keys(response.data)
        ttl = self._ttl_strategy(response.headers)
        self._expires_at = self._now() + ttl if ttl is not None else None
        self._public_keys = public_keys
        logger.info(
            "public_keys_refreshed",
            url=self._url,
            key_count=len(public_keys),
            ttl_seconds=ttl,
        )
        return public_keys

    @abstractmethod
    def _parse_keys(self, payload: dict[str, Any]) -> PublicKeySet:
        """Map a successful response body to a key set."""


class UrlKeyFetcher(_CachingKeyFetcher):
    """Fetch ``{kid: pem}`` maps and honor the response Cache-Control max-age."""

    @staticmethod
    def default_ttl_strategy() -> TTLStrategy:
        return cache_control_ttl

    def _parse_keys(self, payload: dict[str, Any]) -> PublicKeySet:
        public_keys: PublicKeySet = {}
        for kid, pem in payload.items():
            if not isinstance(pem, str):
                raise TokenVerificationError(
                    "internal_error",
                    f"Error fetching public keys for Google certs: invalid key entry {kid!r}.",
                )
            public_keys[str(kid)] = pem
        return public_keys


class JwksKeyFetcher(_CachingKeyFetcher):
    """Fetch a JWKS document and re-check it on a fixed interval."""

    def __init__(
        self,
        url: str,
        client: CertClient | None = None,
        ttl_strategy: TTLStrategy | None = None,
        now: Callable[[], float] | None = None,
        algorithm: str = "RS256",
    ) -> None:
        super().__init__(url, client=client, ttl_strategy=ttl_strategy, now=now)
        self._algorithm = algorithm

    @staticmethod
    def default_ttl_strategy() -> TTLStrategy:
        return fixed_ttl(SIX_HOURS_IN_SECONDS)

    def _parse_keys(self, payload: dict[str, Any]) -> PublicKeySet:
        keys = payload.get("keys")
        if not isinstance(keys, list):
            raise TokenVerificationError(
                "internal_error", "Error fetching public keys: invalid JWKS response payload."
            )

        public_keys: PublicKeySet = {}
        for item in keys:
            if not isinstance(item, dict) or not item.get("kid"):
                continue
            try:
                key = jwk.construct(item, algorithm=item.get("alg", self._algorithm))
                public_keys[str(item["kid"])] = key.to_pem().decode("utf-8")
            except JWKError as exc:
                raise TokenVerificationError(
                    "internal_error",
                    f"Error fetching public keys: invalid JWKS key {item['kid']!r}.",
                ) from exc
        return public_keys


def _fetch_error_message(data: Any, text: str) -> str:
    """Build the internal-error message for a failed key fetch."""
    message = "Error fetching public keys for Google certs: "
    if isinstance(data, dict) and data.get("error"):
        message += str(data["error"])
        if data.get("error_description"):
            message += f" ({data['error_description']})"
        return message
    return message + text
