"""
FastAPI routes for the tenant connector.
"""

from __future__ import annotations

import json
import logging
import uuid
from http import HTTPStatus
from typing import Annotated, Any, Optional
from urllib.parse import quote, urlsplit

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from app.core.errors import AuthError, MissingParameterError, RemoteQueryError
from app.dependencies import (
    get_app_settings,
    get_graphql_client,
    get_provider_oauth_client,
    get_session_manager,
    get_site_query_service,
)
from app.schemas import (
    DashboardSummary,
    GraphQLProxyRequest,
    LoginError,
    SessionStatus,
    UninstallPayload,
    describe_login_error,
)

router = APIRouter()
root_router = APIRouter()
logger = logging.getLogger(__name__)

SUBDOMAIN_COOKIE = "subdomain"
SUBDOMAIN_COOKIE_MAX_AGE = 60 * 60 * 24 * 30


def require_subdomain(
    subdomain: Optional[str] = Query(None, description="Tenant subdomain to connect."),
) -> str:
    if not subdomain:
        raise MissingParameterError("subdomain")
    return subdomain


def _public_base_url(request: Request, settings: Any) -> str:
    """Origin for browser redirects; derived from the redirect URI when set."""
    redirect_uri = settings.provider.redirect_uri
    if redirect_uri:
        parts = urlsplit(str(redirect_uri))
    else:
        parts = urlsplit(str(request.url))
    return f"{parts.scheme}://{parts.netloc}"


def _error(message: str, status: HTTPStatus, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message, **extra})


@root_router.get("/", include_in_schema=False)
async def landing(
    request: Request,
    sessions: Annotated[Any, Depends(get_session_manager)],
) -> RedirectResponse:
    """Send the browser to the dashboard when its tenant is still connected."""
    subdomain = request.cookies.get(SUBDOMAIN_COOKIE)
    if subdomain and await sessions.has_valid_session(subdomain):
        return RedirectResponse(url="/dashboard", status_code=HTTPStatus.FOUND)
    return RedirectResponse(url="/login", status_code=HTTPStatus.FOUND)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/authorize")
async def start_authorization(
    subdomain: Annotated[str, Depends(require_subdomain)],
    oauth_client: Annotated[Any, Depends(get_provider_oauth_client)],
) -> RedirectResponse:
    """Redirect the operator to the tenant's consent screen."""
    state = str(uuid.uuid4())
    authorization_url = oauth_client.build_authorization_url(subdomain, state)
    logger.info("Redirecting %s to provider authorization", subdomain)
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@router.get("/auth/callback")
async def handle_authorization_callback(
    request: Request,
    sessions: Annotated[Any, Depends(get_session_manager)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: Optional[str] = Query(None),
    subdomain: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
) -> RedirectResponse:
    """Complete the code exchange and remember the tenant in a cookie."""
    base_url = _public_base_url(request, settings)

    def login_redirect(error_code: str) -> RedirectResponse:
        return RedirectResponse(
            url=f"{base_url}/login?error={quote(error_code, safe='')}",
            status_code=HTTPStatus.FOUND,
        )

    if error:
        logger.error("OAuth error returned by provider: %s", error)
        return login_redirect(error)
    if not code:
        logger.error("OAuth callback missing authorization code")
        return login_redirect("missing_code")
    if not subdomain:
        logger.error("OAuth callback missing subdomain")
        return login_redirect("missing_subdomain")

    try:
        await sessions.establish_session(code, subdomain)
    except Exception:  # pylint: disable=broad-except
        logger.exception("OAuth callback failed for %s", subdomain)
        return login_redirect("auth_failed")

    response = RedirectResponse(url=f"{base_url}/dashboard", status_code=HTTPStatus.FOUND)
    response.set_cookie(
        key=SUBDOMAIN_COOKIE,
        value=subdomain,
        max_age=SUBDOMAIN_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.post("/auth/logout", status_code=HTTPStatus.OK)
async def logout(response: Response) -> dict:
    """Forget the browser's tenant; the stored session is left in place."""
    response.delete_cookie(SUBDOMAIN_COOKIE, path="/")
    return {"success": True}


@router.get("/auth/login-error", response_model=LoginError)
async def login_error(error: str = Query(..., min_length=1)) -> LoginError:
    return describe_login_error(error)


@router.post("/auth/uninstall")
async def handle_uninstall_webhook(
    request: Request,
    sessions: Annotated[Any, Depends(get_session_manager)],
) -> JSONResponse:
    """Delete the tenant's session when the provider reports an uninstall."""
    try:
        body = await request.json()
        payload = UninstallPayload.model_validate(body)
    except (ValueError, ValidationError) as exc:
        logger.error("Invalid uninstall payload: %s", exc)
        return _error("Invalid payload", HTTPStatus.BAD_REQUEST)

    logger.info("Processing uninstall for %s", payload.subdomain)
    try:
        await sessions.revoke_session(payload.subdomain)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Failed to process uninstall for %s", payload.subdomain)
        return _error("Failed to process uninstall", HTTPStatus.INTERNAL_SERVER_ERROR)

    return JSONResponse(content={"success": True})


@router.get("/auth/uninstall", status_code=HTTPStatus.OK)
async def verify_uninstall_webhook() -> dict:
    return {"status": "ok"}


@router.get("/session", response_model=SessionStatus)
async def session_status(
    request: Request,
    sessions: Annotated[Any, Depends(get_session_manager)],
) -> SessionStatus:
    """Report whether the cookie's tenant has a usable session."""
    subdomain = request.cookies.get(SUBDOMAIN_COOKIE)
    if not subdomain:
        return SessionStatus(authenticated=False)
    return SessionStatus(
        authenticated=await sessions.has_valid_session(subdomain),
        subdomain=subdomain,
    )


@router.post("/graphql")
async def proxy_graphql(
    request: Request,
    client: Annotated[Any, Depends(get_graphql_client)],
) -> JSONResponse:
    """Run a GraphQL query for the body's or the cookie's tenant."""
    try:
        body = await request.json()
    except ValueError:
        return _error("Invalid request body", HTTPStatus.BAD_REQUEST, details=[])
    try:
        payload = GraphQLProxyRequest.model_validate(body)
    except ValidationError as exc:
        return _error(
            "Invalid request body",
            HTTPStatus.BAD_REQUEST,
            details=json.loads(exc.json(include_url=False)),
        )

    subdomain = payload.subdomain or request.cookies.get(SUBDOMAIN_COOKIE)
    if not subdomain:
        return _error("No subdomain found. Please log in.", HTTPStatus.UNAUTHORIZED)

    logger.info("Executing GraphQL query for %s", subdomain)
    try:
        data = await client.request(subdomain, payload.query, payload.variables)
    except AuthError as exc:
        return _error(str(exc), HTTPStatus.UNAUTHORIZED)
    except RemoteQueryError as exc:
        return _error(exc.message, HTTPStatus.INTERNAL_SERVER_ERROR)
    except Exception:  # pylint: disable=broad-except
        logger.exception("GraphQL proxy failed for %s", subdomain)
        return _error("An unexpected error occurred", HTTPStatus.INTERNAL_SERVER_ERROR)

    return JSONResponse(content={"data": data})


@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    request: Request,
    site_queries: Annotated[Any, Depends(get_site_query_service)],
    first: int = Query(10, ge=1, le=100),
) -> Any:
    """Site details and the first page of courses for the connected tenant."""
    subdomain = request.cookies.get(SUBDOMAIN_COOKIE)
    if not subdomain:
        return _error("No subdomain found. Please log in.", HTTPStatus.UNAUTHORIZED)
    try:
        return await site_queries.dashboard(subdomain, first=first)
    except AuthError as exc:
        return _error(str(exc), HTTPStatus.UNAUTHORIZED)
    except RemoteQueryError as exc:
        logger.error("Dashboard query failed for %s: %s", subdomain, exc.message)
        return _error(exc.message, HTTPStatus.BAD_GATEWAY)


__all__ = ["SUBDOMAIN_COOKIE", "root_router", "router"]
