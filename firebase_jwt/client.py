"""Async HTTP client used to fetch public signing keys and metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from firebase_jwt.exceptions import HTTPFetchError

DEFAULT_TIMEOUT = httpx.Timeout(connect=2.0, read=5.0, write=5.0, pool=5.0)


@dataclass(frozen=True)
class CertResponse:
    """Successful JSON response from a key or metadata endpoint."""

    status_code: int
    headers: httpx.Headers
    data: Any
    text: str


class CertClient:
    """Async client for anonymous GET requests against Google endpoints."""

    def __init__(
        self,
        timeout: httpx.Timeout | float | None = None,
        http_client: httpx.AsyncClient | None = None,
        sdk_version: str | None = None,
    ) -> None:
        """Create client with sane defaults and optional injected transport."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout or DEFAULT_TIMEOUT)
        self._default_headers: dict[str, str] = {}
        if sdk_version:
            self._default_headers["X-Client-Version"] = f"Python/firebase-jwt/{sdk_version}"

    async def get(self, url: str, headers: dict[str, str] | None = None) -> CertResponse:
        """Fetch a URL and return its JSON body, raising HTTPFetchError otherwise."""
        response = await self._request(url, headers)
        data = self._json_or_none(response)
        if data is None:
            raise HTTPFetchError(
                f"Request to {url} returned a non-JSON response.",
                status_code=response.status_code,
                body=response.text,
            )
        return CertResponse(
            status_code=response.status_code,
            headers=response.headers,
            data=data,
            text=response.text,
        )

    async def get_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        """Fetch a URL and return its body as text."""
        response = await self._request(url, headers)
        return response.text

    async def aclose(self) -> None:
        """Close underlying HTTP client if owned by this instance."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> CertClient:
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        """Exit async context manager and close managed resources."""
        del exc_type, exc, tb
        await self.aclose()

    async def _request(self, url: str, headers: dict[str, str] | None) -> httpx.Response:
        """Execute GET and normalize transport and HTTP status failures."""
        request_headers = {**self._default_headers, **(headers or {})}
        try:
            response = await self._client.get(url, headers=request_headers)
        except httpx.RequestError as exc:
            raise HTTPFetchError(f"Error while making request to {url}: {exc}") from exc

        if response.status_code >= 400:
            raise HTTPFetchError(
                f"Request to {url} failed with status {response.status_code}.",
                status_code=response.status_code,
                body=response.text,
                data=self._json_or_none(response),
            )
        return response

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        """Return parsed JSON body, or None when the body is not JSON."""
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type.lower():
            return None
        try:
            return response.json()
        except ValueError:
            return None
