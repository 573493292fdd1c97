"""Schemas for the GraphQL proxy and the canned site queries."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GraphQLProxyRequest(BaseModel):
    """Body accepted by the GraphQL proxy endpoint."""

    query: str = Field(..., min_length=1)
    variables: Optional[Dict[str, Any]] = None
    subdomain: Optional[str] = Field(
        None, description="Optional tenant override; defaults to the session cookie."
    )


class SiteInfo(BaseModel):
    id: str
    name: str
    subdomain: str
    url: Optional[str] = None


class Course(BaseModel):
    id: str
    name: str


class CoursePage(BaseModel):
    """One page of courses plus the cursor needed to fetch the next."""

    courses: List[Course] = Field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None


class DashboardSummary(BaseModel):
    site: SiteInfo
    courses: CoursePage


__all__ = [
    "Course",
    "CoursePage",
    "DashboardSummary",
    "GraphQLProxyRequest",
    "SiteInfo",
]
