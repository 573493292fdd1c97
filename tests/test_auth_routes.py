try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy
import uuid
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.clients.provider_auth import ProviderOAuthClient
from app.core.errors import ConfigurationError, ExchangeError
from app.main import app


class FakeSessionManager:
    def __init__(self) -> None:
        self.established: list[tuple[str, str]] = []
        self.revoked: list[str] = []
        self.establish_error: Exception | None = None
        self.valid_tenants: set[str] = set()

    async def establish_session(self, code: str, tenant_id: str):
        if self.establish_error is not None:
            raise self.establish_error
        self.established.append((code, tenant_id))

    async def revoke_session(self, tenant_id: str) -> bool:
        self.revoked.append(tenant_id)
        return True

    async def has_valid_session(self, tenant_id: str) -> bool:
        return tenant_id in self.valid_tenants


@pytest.fixture()
def auth_overrides(provider_config):
    from app import dependencies
    from app.core.config import get_settings

    sessions = FakeSessionManager()
    settings = copy.deepcopy(get_settings())
    settings.environment = "development"
    settings.provider.redirect_uri = "https://connector.example.com/api/auth/callback"

    app.dependency_overrides.update(
        {
            dependencies.get_session_manager: lambda: sessions,
            dependencies.get_provider_oauth_client: lambda: ProviderOAuthClient(provider_config),
            dependencies.get_app_settings: lambda: settings,
        }
    )

    yield sessions, settings

    app.dependency_overrides.clear()


def _client(**kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver", **kwargs
    )


@pytest.mark.anyio
async def test_authorize_redirects_to_tenant_consent_screen(auth_overrides):
    async with _client() as client:
        response = await client.get("/api/auth/authorize", params={"subdomain": "school1"})

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.netloc == "school1.thinkific.com"
    assert location.path == "/oauth2/authorize"
    params = parse_qs(location.query)
    assert params["response_type"] == ["code"]
    assert params["response_mode"] == ["query"]
    uuid.UUID(params["state"][0])


@pytest.mark.anyio
async def test_authorize_requires_subdomain(auth_overrides):
    async with _client() as client:
        response = await client.get("/api/auth/authorize")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing subdomain parameter"}


@pytest.mark.anyio
async def test_authorize_reports_missing_configuration(auth_overrides):
    from app import dependencies

    def unconfigured():
        raise ConfigurationError("missing THINKIFIC_CLIENT_ID")

    app.dependency_overrides[dependencies.get_provider_oauth_client] = unconfigured

    async with _client() as client:
        response = await client.get("/api/auth/authorize", params={"subdomain": "school1"})

    assert response.status_code == 500
    assert response.json() == {"error": "OAuth not configured"}


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("params", "expected_error"),
    [
        ({"error": "access_denied", "code": "abc", "subdomain": "school1"}, "access_denied"),
        ({"subdomain": "school1"}, "missing_code"),
        ({"code": "abc"}, "missing_subdomain"),
    ],
)
async def test_callback_redirects_to_login_with_error(auth_overrides, params, expected_error):
    sessions, _ = auth_overrides

    async with _client() as client:
        response = await client.get("/api/auth/callback", params=params)

    assert response.status_code == 302
    assert response.headers["location"] == (
        f"https://connector.example.com/login?error={expected_error}"
    )
    assert sessions.established == []
    assert "set-cookie" not in response.headers


@pytest.mark.anyio
async def test_callback_failure_maps_to_auth_failed(auth_overrides):
    sessions, _ = auth_overrides
    sessions.establish_error = ExchangeError(400, "invalid_grant")

    async with _client() as client:
        response = await client.get(
            "/api/auth/callback", params={"code": "abc", "subdomain": "school1"}
        )

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=auth_failed")
    assert "invalid_grant" not in response.text


@pytest.mark.anyio
async def test_callback_success_sets_cookie_and_redirects(auth_overrides):
    sessions, _ = auth_overrides

    async with _client() as client:
        response = await client.get(
            "/api/auth/callback", params={"code": "abc", "subdomain": "school1"}
        )

    assert response.status_code == 302
    assert response.headers["location"] == "https://connector.example.com/dashboard"
    assert sessions.established == [("abc", "school1")]
    cookie = response.headers["set-cookie"]
    assert "subdomain=school1" in cookie
    assert "HttpOnly" in cookie
    assert "Max-Age=2592000" in cookie
    assert "Path=/" in cookie
    assert "samesite=lax" in cookie.lower()
    assert "Secure" not in cookie


@pytest.mark.anyio
async def test_callback_cookie_is_secure_in_production(auth_overrides):
    _, settings = auth_overrides
    settings.environment = "production"

    async with _client() as client:
        response = await client.get(
            "/api/auth/callback", params={"code": "abc", "subdomain": "school1"}
        )

    assert "Secure" in response.headers["set-cookie"]


@pytest.mark.anyio
async def test_callback_falls_back_to_request_origin(auth_overrides):
    _, settings = auth_overrides
    settings.provider.redirect_uri = None

    async with _client() as client:
        response = await client.get("/api/auth/callback", params={"subdomain": "school1"})

    assert response.headers["location"] == "http://testserver/login?error=missing_code"


@pytest.mark.anyio
async def test_session_status_and_logout(auth_overrides):
    sessions, _ = auth_overrides
    sessions.valid_tenants.add("school1")

    async with _client() as client:
        anonymous = await client.get("/api/session")
    async with _client(cookies={"subdomain": "school1"}) as client:
        connected = await client.get("/api/session")
        logout = await client.post("/api/auth/logout")

    assert anonymous.json() == {"authenticated": False, "subdomain": None}
    assert connected.json() == {"authenticated": True, "subdomain": "school1"}
    assert logout.json() == {"success": True}
    assert 'subdomain=""' in logout.headers["set-cookie"]


@pytest.mark.anyio
async def test_landing_redirect_depends_on_session(auth_overrides):
    sessions, _ = auth_overrides

    async with _client(cookies={"subdomain": "school1"}) as client:
        to_login = await client.get("/")
        sessions.valid_tenants.add("school1")
        to_dashboard = await client.get("/")

    assert to_login.headers["location"] == "/login"
    assert to_dashboard.headers["location"] == "/dashboard"


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("code", "message"),
    [
        ("missing_code", "Authorization failed. Please try again."),
        ("auth_failed", "Authentication failed. Please check your credentials and try again."),
        ("access_denied", "Error: access_denied"),
    ],
)
async def test_login_error_messages(auth_overrides, code, message):
    async with _client() as client:
        response = await client.get("/api/auth/login-error", params={"error": code})

    assert response.json() == {"code": code, "message": message}
