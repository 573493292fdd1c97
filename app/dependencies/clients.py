"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import (
    DynamoDBSessionStore,
    ProviderOAuthClient,
    SQLiteSessionStore,
    TenantGraphQLClient,
)
from app.core.config import ProviderConfig, get_settings
from app.core.errors import ConfigurationError
from app.services import SiteQueryService, TenantSessionManager, TokenCipherService


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_provider_config() -> ProviderConfig:
    """Provide the explicit provider config; raises ConfigurationError if incomplete."""
    return ProviderConfig.from_settings(_settings().provider)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.provider.client_secret
    if not secret:
        raise ConfigurationError(
            "TOKEN_ENCRYPTION_SECRET or THINKIFIC_CLIENT_SECRET must be set."
        )
    return TokenCipherService(secret=secret)


@lru_cache()
def get_session_store() -> SQLiteSessionStore | DynamoDBSessionStore:
    """Provide the configured tenant session store."""
    settings = _settings()
    if settings.store.backend == "dynamodb":
        return DynamoDBSessionStore.from_settings(
            settings.store, cipher=get_token_cipher_service()
        )
    return SQLiteSessionStore(settings.store.db_path, cipher=get_token_cipher_service())


@lru_cache()
def get_provider_oauth_client() -> ProviderOAuthClient:
    """Create a singleton tenant OAuth client."""
    return ProviderOAuthClient(get_provider_config())


@lru_cache()
def get_session_manager() -> TenantSessionManager:
    """Provide the process-wide session manager (owns the refresh locks)."""
    return TenantSessionManager(
        store=get_session_store(),
        oauth_client=get_provider_oauth_client(),
    )


@lru_cache()
def get_graphql_client() -> TenantGraphQLClient:
    """Provide the tenant-scoped GraphQL client."""
    return TenantGraphQLClient(get_provider_config(), get_session_manager())


def get_site_query_service() -> SiteQueryService:
    """Build a site query service on top of the GraphQL client."""
    return SiteQueryService(get_graphql_client())


__all__ = [
    "get_graphql_client",
    "get_provider_config",
    "get_provider_oauth_client",
    "get_session_manager",
    "get_session_store",
    "get_site_query_service",
    "get_token_cipher_service",
]
