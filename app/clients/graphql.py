"""
Client for the provider's GraphQL API, scoped to one tenant per request.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from app.core.config import ProviderConfig
from app.core.errors import RemoteQueryError

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    async def get_valid_token(self, tenant_id: str) -> str: ...


class TenantGraphQLClient:
    """Issue GraphQL requests with a tenant's bearer token."""

    def __init__(
        self,
        config: ProviderConfig,
        sessions: TokenSource,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._sessions = sessions
        self._transport = transport

    async def request(
        self,
        tenant_id: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Execute ``query`` for ``tenant_id`` and return the ``data`` member.

        Session errors from the token source propagate unchanged. HTTP failures
        and GraphQL ``errors`` arrays raise :class:`RemoteQueryError`.
        """
        token = await self._sessions.get_valid_token(tenant_id)
        headers = {
            "Authorization": f"Bearer {token}",
            self._config.tenant_header: tenant_id,
            "Content-Type": "application/json",
            "User-Agent": self._config.user_agent,
        }
        body: Dict[str, Any] = {"query": query}
        if variables is not None:
            body["variables"] = variables

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._config.api_endpoint, json=body, headers=headers
                )
        except httpx.HTTPError as exc:
            logger.error("GraphQL endpoint unreachable for %s: %s", tenant_id, exc)
            raise RemoteQueryError("GraphQL endpoint unreachable") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            message = _first_error_message(errors)
            logger.warning("GraphQL error for %s: %s", tenant_id, message)
            raise RemoteQueryError(message, status_code=response.status_code)

        if not response.is_success:
            logger.warning(
                "GraphQL request failed for %s with status %s",
                tenant_id,
                response.status_code,
            )
            raise RemoteQueryError(
                f"GraphQL request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(payload, dict):
            raise RemoteQueryError(
                "GraphQL endpoint returned a malformed response",
                status_code=response.status_code,
            )
        return payload.get("data")

    def for_tenant(self, tenant_id: str) -> "BoundTenantClient":
        return BoundTenantClient(self, tenant_id)


class BoundTenantClient:
    """A :class:`TenantGraphQLClient` fixed to a single tenant."""

    def __init__(self, client: TenantGraphQLClient, tenant_id: str) -> None:
        self._client = client
        self.tenant_id = tenant_id

    async def request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        return await self._client.request(self.tenant_id, query, variables)


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
        return str(first)
    return "GraphQL request returned errors"


__all__ = ["BoundTenantClient", "TenantGraphQLClient"]
