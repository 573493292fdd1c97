"""Service layer exports."""

from .site_queries import SiteQueryService
from .tenant_sessions import TenantSessionManager
from .token_cipher import TokenCipherService

__all__ = [
    "SiteQueryService",
    "TenantSessionManager",
    "TokenCipherService",
]
