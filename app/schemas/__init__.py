"""Public schema exports."""

from .auth import (
    LOGIN_ERROR_MESSAGES,
    LoginError,
    SessionStatus,
    TokenPair,
    UninstallPayload,
    describe_login_error,
)
from .graphql import (
    Course,
    CoursePage,
    DashboardSummary,
    GraphQLProxyRequest,
    SiteInfo,
)

__all__ = [
    "LOGIN_ERROR_MESSAGES",
    "Course",
    "CoursePage",
    "DashboardSummary",
    "GraphQLProxyRequest",
    "LoginError",
    "SessionStatus",
    "SiteInfo",
    "TokenPair",
    "UninstallPayload",
    "describe_login_error",
]
