"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBSessionStore
from .graphql import BoundTenantClient, TenantGraphQLClient
from .provider_auth import ProviderOAuthClient
from .sqlite_store import SQLiteSessionStore

__all__ = [
    "BoundTenantClient",
    "DynamoDBSessionStore",
    "ProviderOAuthClient",
    "SQLiteSessionStore",
    "TenantGraphQLClient",
]
