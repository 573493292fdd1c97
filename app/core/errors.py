"""
Error taxonomy shared by the OAuth, session and GraphQL layers.

Routes translate these into redirects or JSON error envelopes; none of the
messages below are meant to be shown to end users verbatim.
"""

from __future__ import annotations

from typing import Optional


class ConnectorError(Exception):
    """Base class for errors raised by this application."""


class MissingParameterError(ConnectorError):
    """Raised when a required client-supplied parameter is absent."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing {parameter} parameter")
        self.parameter = parameter


class ConfigurationError(ConnectorError):
    """Raised when the application is missing required configuration."""


class TokenEndpointError(ConnectorError):
    """The tenant's OAuth token endpoint rejected a request."""

    action = "call token endpoint"

    def __init__(self, status_code: Optional[int], body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Failed to {self.action} (status={status_code}): {body}")


class ExchangeError(TokenEndpointError):
    """Authorization code could not be exchanged for tokens."""

    action = "exchange code for tokens"


class RefreshError(TokenEndpointError):
    """Refresh token could not be exchanged for a new token pair."""

    action = "refresh access token"


class AuthError(ConnectorError):
    """Base class for tenant authentication state problems."""


class NoSessionError(AuthError):
    """No session is stored for the tenant."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__("No session found for subdomain")
        self.tenant_id = tenant_id


class SessionExpiredError(AuthError):
    """The stored session expired and could not be refreshed."""

    def __init__(self, tenant_id: str) -> None:
        super().__init__("Session expired and could not be refreshed")
        self.tenant_id = tenant_id


class RemoteQueryError(ConnectorError):
    """The remote GraphQL API returned an HTTP or GraphQL-level error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


__all__ = [
    "AuthError",
    "ConfigurationError",
    "ConnectorError",
    "ExchangeError",
    "MissingParameterError",
    "NoSessionError",
    "RefreshError",
    "RemoteQueryError",
    "SessionExpiredError",
    "TokenEndpointError",
]
