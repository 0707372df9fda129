"""
Integration tests for the administrative API (/api/v1/admin).
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.core.auth import CallerIdentity
from app.core.linear import get_linear_client
from app.core.workos import get_organization_directory
from app.services.comments import PushFailed, Pushed, get_comment_pusher
from app.services.workspace import ViewerInfo, get_workspace_credentials

ROOT = CallerIdentity(user_id="root", email="ops@agency.test")


@pytest.fixture
async def admin_headers(add_admin, headers_for):
    await add_admin(ROOT.user_id)
    return headers_for(ROOT)


@pytest.fixture
def directory(api):
    fake = AsyncMock()
    fake.create_organization.return_value = "org_created"
    api.dependency_overrides[get_organization_directory] = lambda: fake
    return fake


class TestHubAdmin:
    @pytest.mark.asyncio
    async def test_create_get_update_delete(self, client, admin_headers, directory):
        resp = await client.post("/api/v1/admin/hubs", json={"name": "Globex", "slug": "globex"}, headers=admin_headers)
        assert resp.status_code == 201
        hub_id = resp.json()["id"]
        assert resp.json()["is_active"] is True

        resp = await client.post(f"/api/v1/admin/hubs/{hub_id}/organization", headers=admin_headers)
        assert resp.json()["workos_org_id"] == "org_created"

        resp = await client.patch(f"/api/v1/admin/hubs/{hub_id}", json={"name": "Globex Corp"}, headers=admin_headers)
        assert resp.status_code == 200
        directory.update_organization.assert_awaited_once_with("org_created", "Globex Corp")

        resp = await client.delete(f"/api/v1/admin/hubs/{hub_id}", headers=admin_headers)
        assert resp.status_code == 204
        directory.delete_organization.assert_awaited_once_with("org_created")

        resp = await client.get(f"/api/v1/admin/hubs/{hub_id}", headers=admin_headers)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_slug_is_400_with_field(self, client, admin_headers):
        resp = await client.post("/api/v1/admin/hubs", json={"name": "X", "slug": "Bad Slug"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "slug"

    @pytest.mark.asyncio
    async def test_slug_cannot_be_patched(self, client, hub, admin_headers, directory):
        resp = await client.patch(f"/api/v1/admin/hubs/{hub.id}", json={"slug": "renamed"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["slug"] == "acme"


class TestMembersAndTeams:
    @pytest.mark.asyncio
    async def test_invite_and_list(self, client, hub, admin_headers):
        resp = await client.post(
            f"/api/v1/admin/hubs/{hub.id}/members",
            json={"email": "Client@Acme.com", "role": "view_only"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        member_id = resp.json()["id"]
        assert resp.json()["email"] == "client@acme.com"
        assert resp.json()["status"] == "invited"

        resp = await client.patch(
            f"/api/v1/admin/hubs/{hub.id}/members/{member_id}", json={"role": "default"}, headers=admin_headers
        )
        assert resp.json()["role"] == "default"

        resp = await client.get(f"/api/v1/admin/hubs/{hub.id}/members", headers=admin_headers)
        assert [m["id"] for m in resp.json()] == [member_id]

    @pytest.mark.asyncio
    async def test_team_mapping_crud(self, client, hub, admin_headers):
        resp = await client.post(
            f"/api/v1/admin/hubs/{hub.id}/teams",
            json={"linear_team_id": "t1", "visible_project_ids": ["p1"]},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        mapping_id = resp.json()["id"]

        resp = await client.patch(
            f"/api/v1/admin/hubs/{hub.id}/teams/{mapping_id}",
            json={"hidden_label_ids": ["internal"]},
            headers=admin_headers,
        )
        assert resp.json()["hidden_label_ids"] == ["internal"]
        assert resp.json()["visible_project_ids"] == ["p1"]

        resp = await client.delete(f"/api/v1/admin/hubs/{hub.id}/teams/{mapping_id}", headers=admin_headers)
        assert resp.status_code == 204


class TestWorkspaceToken:
    @pytest.mark.asyncio
    async def test_set_token(self, api, client, admin_headers):
        credentials = AsyncMock()
        credentials.set_token.return_value = ViewerInfo("Ops Bot", "ops@agency.test")
        api.dependency_overrides[get_workspace_credentials] = lambda: credentials

        resp = await client.put("/api/v1/admin/workspace/token", json={"token": "lin_api_x"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "viewer": {"name": "Ops Bot", "email": "ops@agency.test"}}
        credentials.set_token.assert_awaited_once_with("lin_api_x", "root")

    @pytest.mark.asyncio
    async def test_status(self, api, client, admin_headers, fake_credentials):
        api.dependency_overrides[get_workspace_credentials] = lambda: fake_credentials(None)
        resp = await client.get("/api/v1/admin/workspace/token", headers=admin_headers)
        assert resp.json() == {"configured": False}

    @pytest.mark.asyncio
    async def test_team_projects_without_token_is_empty(self, api, client, admin_headers, fake_credentials):
        api.dependency_overrides[get_workspace_credentials] = lambda: fake_credentials(None)
        api.dependency_overrides[get_linear_client] = lambda: AsyncMock()
        resp = await client.get("/api/v1/admin/linear/teams/t1/projects", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == []


class TestCommentRetry:
    @pytest.mark.asyncio
    async def test_retry_failed_comment(self, api, client, hub, admin_headers, add_member, member_identity,
                                        headers_for):
        await add_member(hub, user_id=member_identity.user_id)

        failing = AsyncMock()
        failing.push.return_value = PushFailed("timeout")
        api.dependency_overrides[get_comment_pusher] = lambda: failing
        resp = await client.post(
            "/api/v1/hubs/acme/comments",
            json={"issueLinearId": "ISSUE-42", "body": "Looks good"},
            headers=headers_for(member_identity),
        )
        comment_id = resp.json()["id"]

        resp = await client.get("/api/v1/admin/comments", params={"status": "failed"}, headers=admin_headers)
        assert [c["id"] for c in resp.json()] == [comment_id]

        working = AsyncMock()
        working.push.return_value = Pushed("comment_abc")
        api.dependency_overrides[get_comment_pusher] = lambda: working
        resp = await client.post(f"/api/v1/admin/comments/{comment_id}/retry", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == comment_id
        assert resp.json()["push_status"] == "pushed"

        resp = await client.post(f"/api/v1/admin/comments/{comment_id}/retry", headers=admin_headers)
        assert resp.status_code == 400


class TestPlatformAdmins:
    @pytest.mark.asyncio
    async def test_grant_and_self_revoke_guard(self, client, admin_headers):
        resp = await client.post("/api/v1/admin/platform-admins", json={"user_id": "second"}, headers=admin_headers)
        assert resp.status_code == 201

        resp = await client.delete("/api/v1/admin/platform-admins/root", headers=admin_headers)
        assert resp.status_code == 400

        resp = await client.delete("/api/v1/admin/platform-admins/second", headers=admin_headers)
        assert resp.status_code == 204
