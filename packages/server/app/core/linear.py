"""
Linear GraphQL client.

Only the request shapes the hub needs are implemented:
- ``viewer``: lightweight "who am I" used to validate a token
- ``team_projects``: list projects for a team (live fallback for the mirror)
- ``create_comment``: push a hub comment onto an issue

Every response is parsed as ``{data, errors}``; a non-empty ``errors`` array
is a failure even when the HTTP status is 200.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from app.core.config import get_settings
from app.core.errors import UpstreamError

log = structlog.get_logger()

VIEWER_QUERY = """
  query Viewer {
    viewer { id name email }
  }
"""

TEAM_PROJECTS_QUERY = """
  query TeamProjects($teamId: String!) {
    team(id: $teamId) {
      id
      projects(first: 100) {
        nodes {
          id
          name
          color
          icon
          status { name }
          teams { nodes { id name } }
          initiatives { nodes { id } }
        }
      }
    }
  }
"""

COMMENT_CREATE_MUTATION = """
  mutation CommentCreate($issueId: String!, $body: String!) {
    commentCreate(input: { issueId: $issueId, body: $body }) {
      success
      comment { id }
    }
  }
"""


class LinearGraphQLError(UpstreamError):
    """Linear answered, but with a GraphQL ``errors`` array."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__("GraphQL: " + ", ".join(messages))


@dataclass(frozen=True)
class LinearViewer:
    id: str
    name: str
    email: str


class LinearClient:
    """Thin async client for the Linear GraphQL endpoint."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    async def execute(
        self,
        token: str,
        query: str,
        variables: Optional[dict[str, Any]] = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` object."""
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or self._timeout),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(
                    self._api_url,
                    json=body,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": token.strip(),
                    },
                )
            except httpx.TimeoutException as exc:
                log.warning("linear.timeout", error=str(exc))
                raise UpstreamError("Linear request timed out") from exc
            except httpx.HTTPError as exc:
                log.warning("linear.unreachable", error=str(exc))
                raise UpstreamError(f"Linear API unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise UpstreamError(f"Linear API {resp.status_code}: {resp.text[:500]}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError("Linear API returned a non-JSON response") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"Linear API returned a {type(payload).__name__}, expected an object")

        errors = payload.get("errors") or []
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            raise LinearGraphQLError([
                e.get("message", "unknown error") if isinstance(e, dict) else str(e)
                for e in errors
            ])

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise UpstreamError("Linear API returned malformed data")
        return data

    async def viewer(self, token: str) -> LinearViewer:
        data = await self.execute(token, VIEWER_QUERY)
        viewer = data.get("viewer")
        if not viewer:
            raise UpstreamError("Linear viewer query returned no viewer")
        return LinearViewer(
            id=viewer.get("id", ""),
            name=viewer.get("name", ""),
            email=viewer.get("email", ""),
        )

    async def team_projects(self, token: str, team_id: str) -> list[dict[str, Any]]:
        """Return raw project nodes for a team (empty if the team is unknown)."""
        data = await self.execute(token, TEAM_PROJECTS_QUERY, {"teamId": team_id})
        team = data.get("team") or {}
        return list((team.get("projects") or {}).get("nodes") or [])

    async def create_comment(
        self,
        token: str,
        issue_id: str,
        body: str,
        *,
        timeout: float | None = None,
    ) -> str:
        """Create a comment on an issue and return the Linear comment id."""
        data = await self.execute(
            token,
            COMMENT_CREATE_MUTATION,
            {"issueId": issue_id, "body": body},
            timeout=timeout,
        )
        result = data.get("commentCreate") or {}
        comment = result.get("comment") or {}
        if not result.get("success") or not comment.get("id"):
            raise UpstreamError("Linear commentCreate returned unsuccessful")
        return comment["id"]


def get_linear_client() -> LinearClient:
    settings = get_settings()
    return LinearClient(settings.linear_api_url, timeout=settings.linear_request_timeout_seconds)
