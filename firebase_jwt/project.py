"""Google Cloud project ID resolution."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

import structlog

from firebase_jwt.client import CertClient
from firebase_jwt.config import Settings, get_settings
from firebase_jwt.exceptions import HTTPFetchError, TokenVerificationError

METADATA_PROJECT_ID_URL = "http://metadata.google.internal/computeMetadata/v1/project/project-id"
METADATA_HEADERS = {"Metadata-Flavor": "Google"}

ProjectIdSource = Callable[[], str | None | Awaitable[str | None]]

logger = structlog.get_logger(__name__)


class ProjectIdResolver:
    """Resolve the project ID from explicit config, the environment or GCE metadata."""

    def __init__(
        self,
        project_id: str | None = None,
        settings: Settings | None = None,
        client: CertClient | None = None,
        discover: bool | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._project_id = project_id
        self._client = client
        self._discover = self._settings.discover_project_id if discover is None else discover
        self._discovered: str | None = None

    def explicit_project_id(self) -> str | None:
        """Return the configured project ID without any network calls."""
        if self._project_id:
            return self._project_id
        return self._settings.project_id

    async def resolve(self) -> str | None:
        """Return the project ID, querying the metadata server once when enabled."""
        explicit = self.explicit_project_id()
        if explicit:
            return explicit
        if self._discovered:
            return self._discovered
        if not self._discover:
            return None

        client = self._client or CertClient(timeout=self._settings.http_timeout_seconds)
        try:
            project_id = (await client.get_text(METADATA_PROJECT_ID_URL, METADATA_HEADERS)).strip()
        except HTTPFetchError as exc:
            logger.warning("project_id_discovery_failed", status_code=exc.status_code)
            raise TokenVerificationError(
                "invalid_credential", f"Failed to determine project ID: {exc.detail}"
            ) from exc
        finally:
            if self._client is None:
                await client.aclose()

        self._discovered = project_id or None
        return self._discovered


async def resolve_project_id(source: ProjectIdResolver | ProjectIdSource) -> str | None:
    """Call a resolver object or a plain sync/async callable."""
    if isinstance(source, ProjectIdResolver):
        return await source.resolve()
    result = source()
    if inspect.isawaitable(result):
        return await result
    return result
