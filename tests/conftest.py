"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.core.config import ProviderConfig


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="https://connector.example.com/api/auth/callback",
        api_endpoint="https://api.thinkific.com/stable/graphql",
    )
