"""SDK settings and logging configuration."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Literal

import structlog
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_JWT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "FIREBASE_JWT_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT"
        ),
    )
    auth_emulator_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "FIREBASE_JWT_AUTH_EMULATOR_HOST", "FIREBASE_AUTH_EMULATOR_HOST"
        ),
    )
    discover_project_id: bool = False
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    session_cookie_name: str = "session"
    service: str = "firebase-jwt"
    sdk_version: str = "0.1.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_logs: bool = True

    @field_validator("project_id", "auth_emulator_host")
    @classmethod
    def blank_as_none(cls, value: str | None) -> str | None:
        """Treat blank environment values as unset."""
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def emulator_enabled(self) -> bool:
        """Whether tokens should be verified against the Auth emulator."""
        return self.auth_emulator_host is not None



SENSITIVE_LOG_KEYS = {
    "authorization",
    "cookie",
    "id_token",
    "private_key",
    "session_cookie",
    "token",
}
REDACTED = "***REDACTED***"


def _is_sensitive_key(key: str) -> bool:
    """Return True when a log field likely carries a raw credential."""
    normalized = key.lower().replace("-", "_")
    return (
        normalized in SENSITIVE_LOG_KEYS
        or normalized.endswith("_token")
        or normalized.endswith("_cookie")
    )


def redact_credentials(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Replace raw tokens and cookies in log events before rendering."""
    for key in list(event_dict):
        if key != "event" and _is_sensitive_key(key):
            event_dict[key] = REDACTED
    return event_dict


def _sdk_context(settings: Settings) -> structlog.types.Processor:
    """Build a processor stamping service and SDK version onto every event."""

    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", settings.service)
        event_dict.setdefault("sdk_version", settings.sdk_version)
        return event_dict

    return processor


def configure_structlog(settings: Settings | None = None) -> None:
    """Install structlog processors for SDK events.

    Applications that already configure structlog can skip this; the SDK only
    emits events through ``structlog.get_logger``.
    """
    settings = settings or get_settings()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if settings.json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            _sdk_context(settings),
            redact_credentials,
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Load and cache SDK settings from environment variables."""
    return Settings()
