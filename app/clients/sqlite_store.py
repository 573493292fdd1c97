"""SQLite-backed store for tenant OAuth sessions."""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from app.models.session import TenantSession, utcnow
from app.schemas.auth import TokenPair
from app.services.token_cipher import TokenCipherService


class SQLiteSessionStore:
    """One row per tenant; token columns are encrypted with the cipher."""

    def __init__(
        self,
        db_path: str,
        *,
        cipher: TokenCipherService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._cipher = cipher
        self._clock = clock
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tenant_sessions (
                    tenant_id TEXT PRIMARY KEY,
                    access_token TEXT NOT NULL,
                    refresh_token TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def _row_to_session(self, row: sqlite3.Row) -> TenantSession:
        return TenantSession(
            tenant_id=row["tenant_id"],
            access_token=self._cipher.decrypt(row["access_token"]),
            refresh_token=self._cipher.decrypt(row["refresh_token"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _find(self, tenant_id: str) -> Optional[TenantSession]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tenant_sessions WHERE tenant_id = ?",
                (tenant_id,),
            ).fetchone()
        if not row:
            return None
        return self._row_to_session(row)

    def _upsert(self, tenant_id: str, tokens: TokenPair) -> TenantSession:
        session = TenantSession.from_tokens(tenant_id, tokens, now=self._clock())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tenant_sessions
                    (tenant_id, access_token, refresh_token, expires_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(tenant_id) DO UPDATE SET
                    access_token = excluded.access_token,
                    refresh_token = excluded.refresh_token,
                    expires_at = excluded.expires_at,
                    updated_at = excluded.updated_at
                """,
                (
                    tenant_id,
                    self._cipher.encrypt(session.access_token),
                    self._cipher.encrypt(session.refresh_token),
                    session.expires_at.isoformat(),
                    session.created_at.isoformat(),
                    session.updated_at.isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT created_at FROM tenant_sessions WHERE tenant_id = ?",
                (tenant_id,),
            ).fetchone()
        return session.model_copy(
            update={"created_at": datetime.fromisoformat(row["created_at"])}
        )

    def _update(self, tenant_id: str, tokens: TokenPair) -> Optional[TenantSession]:
        now = self._clock()
        session = TenantSession.from_tokens(tenant_id, tokens, now=now)
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE tenant_sessions
                SET access_token = ?, refresh_token = ?, expires_at = ?, updated_at = ?
                WHERE tenant_id = ?
                """,
                (
                    self._cipher.encrypt(session.access_token),
                    self._cipher.encrypt(session.refresh_token),
                    session.expires_at.isoformat(),
                    session.updated_at.isoformat(),
                    tenant_id,
                ),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT created_at FROM tenant_sessions WHERE tenant_id = ?",
                (tenant_id,),
            ).fetchone()
        return session.model_copy(
            update={"created_at": datetime.fromisoformat(row["created_at"])}
        )

    def _delete(self, tenant_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM tenant_sessions WHERE tenant_id = ?",
                (tenant_id,),
            )
        return cursor.rowcount > 0

    async def find_by_tenant(self, tenant_id: str) -> Optional[TenantSession]:
        return await asyncio.to_thread(self._find, tenant_id)

    async def upsert(self, tenant_id: str, tokens: TokenPair) -> TenantSession:
        """Create or replace the tenant's session with a fresh token pair."""
        return await asyncio.to_thread(self._upsert, tenant_id, tokens)

    async def update(self, tenant_id: str, tokens: TokenPair) -> Optional[TenantSession]:
        """Replace the token pair of an existing session; ``None`` if absent."""
        return await asyncio.to_thread(self._update, tenant_id, tokens)

    async def delete(self, tenant_id: str) -> bool:
        return await asyncio.to_thread(self._delete, tenant_id)


__all__ = ["SQLiteSessionStore"]
