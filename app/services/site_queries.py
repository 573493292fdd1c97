"""Canned GraphQL queries for the connected site's dashboard."""

from __future__ import annotations

import asyncio
from textwrap import dedent
from typing import Any, Optional

from app.clients.graphql import TenantGraphQLClient
from app.core.errors import RemoteQueryError
from app.schemas.graphql import Course, CoursePage, DashboardSummary, SiteInfo

GET_SITE_INFO = dedent(
    """
    query GetSiteInfo {
      site {
        id
        name
        subdomain
        url
      }
    }
    """
).strip()

GET_COURSES = dedent(
    """
    query GetCourses($first: Int!, $after: String) {
      site {
        courses(first: $first, after: $after) {
          edges {
            node {
              id
              name
            }
          }
          pageInfo {
            hasNextPage
            endCursor
          }
        }
      }
    }
    """
).strip()

GET_COURSE_BY_ID = dedent(
    """
    query GetCourseById($id: ID!) {
      site {
        course(id: $id) {
          id
          name
        }
      }
    }
    """
).strip()


def _site(data: Any) -> dict:
    if not isinstance(data, dict) or not isinstance(data.get("site"), dict):
        raise RemoteQueryError("GraphQL response is missing the site object")
    return data["site"]


class SiteQueryService:
    """Typed wrappers around the site and course queries."""

    def __init__(self, client: TenantGraphQLClient) -> None:
        self._client = client

    async def get_site_info(self, tenant_id: str) -> SiteInfo:
        data = await self._client.request(tenant_id, GET_SITE_INFO)
        return SiteInfo.model_validate(_site(data))

    async def list_courses(
        self, tenant_id: str, *, first: int = 10, after: Optional[str] = None
    ) -> CoursePage:
        variables: dict = {"first": first}
        if after is not None:
            variables["after"] = after
        data = await self._client.request(tenant_id, GET_COURSES, variables)
        connection = _site(data).get("courses") or {}
        page_info = connection.get("pageInfo") or {}
        return CoursePage(
            courses=[
                Course.model_validate(edge["node"])
                for edge in connection.get("edges") or []
                if edge.get("node")
            ],
            has_next_page=bool(page_info.get("hasNextPage")),
            end_cursor=page_info.get("endCursor"),
        )

    async def get_course(self, tenant_id: str, course_id: str) -> Optional[Course]:
        data = await self._client.request(tenant_id, GET_COURSE_BY_ID, {"id": course_id})
        course = _site(data).get("course")
        return Course.model_validate(course) if course else None

    async def dashboard(self, tenant_id: str, *, first: int = 10) -> DashboardSummary:
        """Fetch site details and the first page of courses concurrently."""
        site, courses = await asyncio.gather(
            self.get_site_info(tenant_id),
            self.list_courses(tenant_id, first=first),
        )
        return DashboardSummary(site=site, courses=courses)


__all__ = [
    "GET_COURSES",
    "GET_COURSE_BY_ID",
    "GET_SITE_INFO",
    "SiteQueryService",
]
