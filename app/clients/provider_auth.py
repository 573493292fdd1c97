"""
OAuth utilities for tenant sites on the course provider.

Each tenant has its own authorize and token endpoints under
``https://<subdomain>.<provider_domain>/oauth2/``; the app authenticates to
them with a single client id/secret pair.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional, Type
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from app.core.config import ProviderConfig
from app.core.errors import ExchangeError, RefreshError, TokenEndpointError
from app.schemas.auth import TokenPair

logger = logging.getLogger(__name__)


class ProviderOAuthClient:
    """Build authorization URLs and exchange codes or refresh tokens."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _tenant_base_url(self, tenant_id: str) -> str:
        return f"https://{tenant_id}.{self._config.provider_domain}/oauth2"

    def authorize_url(self, tenant_id: str) -> str:
        return f"{self._tenant_base_url(tenant_id)}/authorize"

    def token_url(self, tenant_id: str) -> str:
        return f"{self._tenant_base_url(tenant_id)}/token"

    def build_authorization_url(self, tenant_id: str, state: str) -> str:
        """Construct the tenant-specific consent URL."""
        params = {
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "response_type": "code",
            "response_mode": "query",
            "state": state,
        }
        return f"{self.authorize_url(tenant_id)}?{urlencode(params)}"

    def _basic_auth_header(self) -> str:
        raw = f"{self._config.client_id}:{self._config.client_secret}".encode("utf-8")
        return f"Basic {base64.b64encode(raw).decode('ascii')}"

    async def _post_token_request(
        self,
        tenant_id: str,
        payload: Dict[str, Any],
        error_cls: Type[TokenEndpointError],
    ) -> TokenPair:
        url = self.token_url(tenant_id)
        headers = {
            "Authorization": self._basic_auth_header(),
            "Content-Type": "application/json",
            "User-Agent": self._config.user_agent,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Token endpoint unreachable for %s: %s", tenant_id, exc)
            raise error_cls(None, str(exc)) from exc

        if not response.is_success:
            logger.error(
                "Token request (%s) failed for %s: %s %s",
                payload["grant_type"],
                tenant_id,
                response.status_code,
                response.text,
            )
            raise error_cls(response.status_code, response.text)

        try:
            return TokenPair.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Incomplete token payload returned for %s", tenant_id)
            raise error_cls(response.status_code, response.text) from exc

    async def exchange_code(self, code: str, tenant_id: str) -> TokenPair:
        """Exchange an authorization code for a token pair."""
        logger.info("Exchanging authorization code for %s", tenant_id)
        return await self._post_token_request(
            tenant_id,
            {"grant_type": "authorization_code", "code": code},
            ExchangeError,
        )

    async def refresh(self, refresh_token: str, tenant_id: str) -> TokenPair:
        """Mint a new token pair from a refresh token."""
        logger.info("Refreshing access token for %s", tenant_id)
        return await self._post_token_request(
            tenant_id,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            RefreshError,
        )


__all__ = ["ProviderOAuthClient"]
