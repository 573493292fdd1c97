"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_graphql_client,
    get_provider_config,
    get_provider_oauth_client,
    get_session_manager,
    get_session_store,
    get_site_query_service,
    get_token_cipher_service,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_graphql_client",
    "get_provider_config",
    "get_provider_oauth_client",
    "get_session_manager",
    "get_session_store",
    "get_site_query_service",
    "get_token_cipher_service",
]
