"""
DynamoDB-backed store for tenant OAuth sessions.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from app.core.config import StoreSettings
from app.core.errors import ConfigurationError
from app.models.session import TenantSession, utcnow
from app.schemas.auth import TokenPair
from app.services.token_cipher import TokenCipherService

_SORT_KEY = "oauth#session"


def _partition_key(tenant_id: str) -> str:
    return f"tenant#{tenant_id}"


class DynamoDBSessionStore:
    """Stores each tenant session as a single (pk, sk) item."""

    def __init__(
        self,
        table: Any,
        *,
        cipher: TokenCipherService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._table = table
        self._cipher = cipher
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: StoreSettings, *, cipher: TokenCipherService
    ) -> "DynamoDBSessionStore":
        if not settings.dynamodb_table_name:
            raise ConfigurationError(
                "DYNAMODB_TABLE_NAME is required when SESSION_STORE_BACKEND=dynamodb."
            )
        resource = boto3.resource("dynamodb", region_name=settings.region_name)
        return cls(resource.Table(settings.dynamodb_table_name), cipher=cipher)

    def _to_item(self, session: TenantSession) -> Dict[str, Any]:
        return {
            "pk": _partition_key(session.tenant_id),
            "sk": _SORT_KEY,
            "tenant_id": session.tenant_id,
            "access_token_encrypted": self._cipher.encrypt(session.access_token),
            "refresh_token_encrypted": self._cipher.encrypt(session.refresh_token),
            "expires_at": session.expires_at.isoformat(),
            "created_at": session.created_at.isoformat(),
            "updated_at": session.updated_at.isoformat(),
        }

    def _from_item(self, item: Dict[str, Any]) -> TenantSession:
        return TenantSession(
            tenant_id=item["tenant_id"],
            access_token=self._cipher.decrypt(item["access_token_encrypted"]),
            refresh_token=self._cipher.decrypt(item["refresh_token_encrypted"]),
            expires_at=datetime.fromisoformat(item["expires_at"]),
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )

    def _get(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        response = self._table.get_item(
            Key={"pk": _partition_key(tenant_id), "sk": _SORT_KEY},
            ConsistentRead=True,
        )
        return response.get("Item")

    def _find(self, tenant_id: str) -> Optional[TenantSession]:
        item = self._get(tenant_id)
        return self._from_item(item) if item else None

    def _upsert(self, tenant_id: str, tokens: TokenPair) -> TenantSession:
        now = self._clock()
        existing = self._get(tenant_id)
        created_at = datetime.fromisoformat(existing["created_at"]) if existing else None
        session = TenantSession.from_tokens(
            tenant_id, tokens, now=now, created_at=created_at
        )
        self._table.put_item(Item=self._to_item(session))
        return session

    def _update(self, tenant_id: str, tokens: TokenPair) -> Optional[TenantSession]:
        session = TenantSession.from_tokens(tenant_id, tokens, now=self._clock())
        item = self._to_item(session)
        try:
            response = self._table.update_item(
                Key={"pk": item["pk"], "sk": item["sk"]},
                UpdateExpression=(
                    "SET access_token_encrypted = :a, refresh_token_encrypted = :r, "
                    "expires_at = :e, updated_at = :u"
                ),
                ConditionExpression="attribute_exists(pk)",
                ExpressionAttributeValues={
                    ":a": item["access_token_encrypted"],
                    ":r": item["refresh_token_encrypted"],
                    ":e": item["expires_at"],
                    ":u": item["updated_at"],
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            raise
        return self._from_item(response["Attributes"])

    def _delete(self, tenant_id: str) -> bool:
        response = self._table.delete_item(
            Key={"pk": _partition_key(tenant_id), "sk": _SORT_KEY},
            ReturnValues="ALL_OLD",
        )
        return bool(response.get("Attributes"))

    async def find_by_tenant(self, tenant_id: str) -> Optional[TenantSession]:
        return await asyncio.to_thread(self._find, tenant_id)

    async def upsert(self, tenant_id: str, tokens: TokenPair) -> TenantSession:
        return await asyncio.to_thread(self._upsert, tenant_id, tokens)

    async def update(self, tenant_id: str, tokens: TokenPair) -> Optional[TenantSession]:
        return await asyncio.to_thread(self._update, tenant_id, tokens)

    async def delete(self, tenant_id: str) -> bool:
        return await asyncio.to_thread(self._delete, tenant_id)


__all__ = ["DynamoDBSessionStore"]
