"""
Domain models for tenant OAuth session persistence.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.auth import TokenPair


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TenantSession(BaseModel):
    """Token pair and expiry stored for a single tenant."""

    tenant_id: str = Field(..., description="Tenant subdomain; unique key.")
    access_token: str
    refresh_token: str
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_tokens(
        cls,
        tenant_id: str,
        tokens: TokenPair,
        *,
        now: datetime,
        created_at: Optional[datetime] = None,
    ) -> "TenantSession":
        """Build a session whose expiry is derived from ``now + expires_in``."""
        return cls(
            tenant_id=tenant_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=now + timedelta(seconds=tokens.expires_in),
            created_at=created_at or now,
            updated_at=now,
        )

    def expires_within(self, window: timedelta, *, now: datetime) -> bool:
        """True when the token expires before ``now + window``."""
        return self.expires_at < now + window


__all__ = ["TenantSession", "utcnow"]
