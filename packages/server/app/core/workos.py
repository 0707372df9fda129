"""
WorkOS organization directory client.

Each hub owns one WorkOS organization; the organization id is what the
identity provider puts in a caller's ``org_id`` session claim.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from app.core.config import get_settings
from app.core.errors import UpstreamError

log = structlog.get_logger()


class OrganizationDirectory:
    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self._api_url,
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(f"WorkOS unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise UpstreamError(f"WorkOS {method} {path} -> {resp.status_code}: {resp.text[:300]}")
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    async def create_organization(self, name: str) -> str:
        """Create an organization and return its id."""
        data = await self._request("POST", "/organizations", {"name": name})
        org_id = data.get("id")
        if not org_id:
            raise UpstreamError("WorkOS create organization returned no id")
        log.info("workos.org_created", org_id=org_id)
        return org_id

    async def update_organization(self, org_id: str, name: str) -> None:
        await self._request("PUT", f"/organizations/{org_id}", {"name": name})

    async def delete_organization(self, org_id: str) -> None:
        await self._request("DELETE", f"/organizations/{org_id}")
        log.info("workos.org_deleted", org_id=org_id)


def get_organization_directory() -> OrganizationDirectory:
    settings = get_settings()
    return OrganizationDirectory(
        settings.workos_api_url,
        settings.workos_api_key,
        timeout=settings.workos_request_timeout_seconds,
    )
