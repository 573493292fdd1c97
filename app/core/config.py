"""
Application configuration models and helpers.

Settings are read from the environment (and an optional ``.env`` file) once,
then turned into an explicit :class:`ProviderConfig` that is handed to the
OAuth and GraphQL clients so business logic never reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into ``os.environ``."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip().strip('"').strip("'")


_load_env_file()


class ProviderSettings(BaseSettings):
    """OAuth application and API settings for the course provider."""

    client_id: Optional[str] = Field(None, validation_alias="THINKIFIC_CLIENT_ID")
    client_secret: Optional[str] = Field(
        None, validation_alias="THINKIFIC_CLIENT_SECRET"
    )
    redirect_uri: Optional[AnyHttpUrl] = Field(
        None, validation_alias="THINKIFIC_REDIRECT_URI"
    )
    provider_domain: str = Field(
        "thinkific.com",
        validation_alias="THINKIFIC_PROVIDER_DOMAIN",
        description="Tenant sites live at <subdomain>.<provider_domain>.",
    )
    graphql_endpoint: AnyHttpUrl = Field(
        "https://api.thinkific.com/stable/graphql",
        validation_alias="THINKIFIC_GRAPHQL_ENDPOINT",
    )
    tenant_header: str = Field(
        "X-Thinkific-Subdomain", validation_alias="THINKIFIC_TENANT_HEADER"
    )
    user_agent: str = Field("LearnAlchemy/1.0", validation_alias="THINKIFIC_USER_AGENT")
    http_timeout: float = Field(10.0, validation_alias="THINKIFIC_HTTP_TIMEOUT")

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("client_id", "client_secret", "redirect_uri", mode="before")
    @classmethod
    def _blank_as_missing(cls, value):
        """Treat empty environment values as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StoreSettings(BaseSettings):
    """Where tenant sessions are persisted."""

    backend: Literal["sqlite", "dynamodb"] = Field(
        "sqlite", validation_alias="SESSION_STORE_BACKEND"
    )
    db_path: str = Field("data/sessions.db", validation_alias="SESSION_DB_PATH")
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="DYNAMODB_TABLE_NAME"
    )

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Comma-separated secrets used to derive the keys that encrypt stored "
            "tokens. The first one encrypts; all of them are accepted on decrypt."
        ),
    )

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@dataclass(frozen=True)
class ProviderConfig:
    """Explicit provider configuration passed into the OAuth and API clients."""

    client_id: str
    client_secret: str
    redirect_uri: str
    api_endpoint: str
    provider_domain: str = "thinkific.com"
    tenant_header: str = "X-Thinkific-Subdomain"
    user_agent: str = "LearnAlchemy/1.0"
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> "ProviderConfig":
        """Build the config, failing loudly when OAuth credentials are missing."""
        missing = [
            env_name
            for env_name, value in (
                ("THINKIFIC_CLIENT_ID", settings.client_id),
                ("THINKIFIC_CLIENT_SECRET", settings.client_secret),
                ("THINKIFIC_REDIRECT_URI", settings.redirect_uri),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"OAuth not configured; missing {', '.join(missing)}."
            )
        return cls(
            client_id=settings.client_id,  # type: ignore[arg-type]
            client_secret=settings.client_secret,  # type: ignore[arg-type]
            redirect_uri=str(settings.redirect_uri),
            api_endpoint=str(settings.graphql_endpoint),
            provider_domain=settings.provider_domain,
            tenant_header=settings.tenant_header,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout,
        )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ProviderConfig",
    "ProviderSettings",
    "SecuritySettings",
    "StoreSettings",
    "get_settings",
]
