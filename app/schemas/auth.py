"""Schemas related to OAuth flows and tenant sessions."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Ten years; anything longer is treated as a malformed token response.
MAX_TOKEN_LIFETIME = 10 * 365 * 24 * 60 * 60


class TokenPair(BaseModel):
    """Tokens returned by the tenant token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    expires_in: int = Field(
        ...,
        gt=0,
        le=MAX_TOKEN_LIFETIME,
        description="Lifetime of the access token in seconds.",
    )
    token_type: Optional[str] = None
    gid: Optional[str] = Field(None, description="Provider-side grant identifier, when sent.")


class UninstallPayload(BaseModel):
    """Webhook body sent by the provider when a tenant removes the app."""

    subdomain: str = Field(..., min_length=1)
    event: Optional[str] = None
    timestamp: Optional[str] = None


class SessionStatus(BaseModel):
    """Whether the browser's tenant currently has a usable session."""

    authenticated: bool
    subdomain: Optional[str] = None


class LoginError(BaseModel):
    code: str
    message: str


LOGIN_ERROR_MESSAGES = {
    "missing_code": "Authorization failed. Please try again.",
    "missing_subdomain": "Missing subdomain information. Please try again.",
    "auth_failed": "Authentication failed. Please check your credentials and try again.",
}


def describe_login_error(code: str) -> LoginError:
    """Map a callback error code to the text shown on the login page."""
    message = LOGIN_ERROR_MESSAGES.get(code, f"Error: {code}")
    return LoginError(code=code, message=message)


__all__ = [
    "LOGIN_ERROR_MESSAGES",
    "MAX_TOKEN_LIFETIME",
    "LoginError",
    "SessionStatus",
    "TokenPair",
    "UninstallPayload",
    "describe_login_error",
]
