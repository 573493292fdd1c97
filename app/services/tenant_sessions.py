"""
Lifecycle management for per-tenant OAuth sessions.

The store is the only source of truth for tokens. The manager adds no token
cache; it only keeps one lock per tenant so that concurrent requests inside
this process share a single refresh call. Separate processes can still
refresh the same tenant concurrently, in which case the last write wins and
a caller holding a superseded token recovers by calling
:meth:`TenantSessionManager.get_valid_token` again.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from app.core.errors import NoSessionError, RefreshError, SessionExpiredError
from app.models.session import TenantSession, utcnow
from app.schemas.auth import TokenPair

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    async def find_by_tenant(self, tenant_id: str) -> Optional[TenantSession]: ...

    async def upsert(self, tenant_id: str, tokens: TokenPair) -> TenantSession: ...

    async def update(self, tenant_id: str, tokens: TokenPair) -> Optional[TenantSession]: ...

    async def delete(self, tenant_id: str) -> bool: ...


class TokenExchanger(Protocol):
    async def exchange_code(self, code: str, tenant_id: str) -> TokenPair: ...

    async def refresh(self, refresh_token: str, tenant_id: str) -> TokenPair: ...


class TenantSessionManager:
    """Hands out valid access tokens, refreshing them shortly before expiry."""

    REFRESH_BUFFER = timedelta(minutes=5)
    VALIDITY_BUFFER = timedelta(seconds=60)

    def __init__(
        self,
        store: SessionStore,
        oauth_client: TokenExchanger,
        *,
        refresh_buffer: timedelta = REFRESH_BUFFER,
        validity_buffer: timedelta = VALIDITY_BUFFER,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._refresh_buffer = refresh_buffer
        self._validity_buffer = validity_buffer
        self._clock = clock
        # Entries vanish once no coroutine holds or waits on the lock.
        self._refresh_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._refresh_locks.get(tenant_id)
        if lock is None:
            lock = self._refresh_locks[tenant_id] = asyncio.Lock()
        return lock

    async def _load(self, tenant_id: str) -> TenantSession:
        session = await self._store.find_by_tenant(tenant_id)
        if session is None:
            raise NoSessionError(tenant_id)
        return session

    def _needs_refresh(self, session: TenantSession) -> bool:
        return session.expires_within(self._refresh_buffer, now=self._clock())

    async def get_valid_token(self, tenant_id: str) -> str:
        """Return a usable access token, refreshing the stored pair if needed."""
        session = await self._load(tenant_id)
        if not self._needs_refresh(session):
            return session.access_token

        async with self._lock_for(tenant_id):
            # Another request may have refreshed while we waited for the lock.
            session = await self._load(tenant_id)
            if not self._needs_refresh(session):
                return session.access_token

            logger.info("Token expiring for %s; refreshing", tenant_id)
            try:
                tokens = await self._oauth.refresh(session.refresh_token, tenant_id)
            except RefreshError as exc:
                logger.warning("Failed to refresh token for %s: %s", tenant_id, exc)
                raise SessionExpiredError(tenant_id) from exc

            updated = await self._store.update(tenant_id, tokens)
            if updated is None:
                logger.info("Session for %s was revoked during refresh", tenant_id)
                raise NoSessionError(tenant_id)
            return updated.access_token

    async def establish_session(self, code: str, tenant_id: str) -> TenantSession:
        """Exchange an authorization code and persist the resulting session."""
        tokens = await self._oauth.exchange_code(code, tenant_id)
        session = await self._store.upsert(tenant_id, tokens)
        logger.info("Session established for %s", tenant_id)
        return session

    async def revoke_session(self, tenant_id: str) -> bool:
        """Delete the tenant's session; a missing session is not an error."""
        deleted = await self._store.delete(tenant_id)
        if deleted:
            logger.info("Session deleted for %s", tenant_id)
        else:
            logger.info("No session to delete for %s", tenant_id)
        return deleted

    async def has_valid_session(self, tenant_id: str) -> bool:
        """Read-only check used for access gating; never refreshes."""
        session = await self._store.find_by_tenant(tenant_id)
        if session is None:
            return False
        return session.expires_at > self._clock() + self._validity_buffer


__all__ = ["SessionStore", "TenantSessionManager", "TokenExchanger"]
