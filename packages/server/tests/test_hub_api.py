"""
Integration tests for the hub portal endpoints (/api/v1/hubs/{hubSlug}).
"""

from __future__ import annotations

import pytest

from app.core.auth import CallerIdentity


class TestMe:
    @pytest.mark.asyncio
    async def test_member_payload_is_camel_case(self, client, hub, add_member, member_identity, headers_for):
        await add_member(hub, user_id=member_identity.user_id, role="view_only")
        resp = await client.get("/api/v1/hubs/acme/me", headers=headers_for(member_identity))
        assert resp.status_code == 200
        data = resp.json()
        assert data["userId"] == "user_member"
        assert data["role"] == "view_only"
        assert data["isViewOnly"] is True
        assert data["requestFormsEnabled"] is False
        assert data["hubName"] == "Acme Corp"

    @pytest.mark.asyncio
    async def test_unknown_hub_is_404(self, client, member_identity, headers_for):
        resp = await client.get("/api/v1/hubs/nope/me", headers=headers_for(member_identity))
        assert resp.status_code == 404
        assert resp.json()["error"] == {"code": "HUB_NOT_FOUND", "message": "Hub does not exist", "status": 404}

    @pytest.mark.asyncio
    async def test_non_member_is_403(self, client, hub, member_identity, headers_for):
        resp = await client.get("/api/v1/hubs/acme/me", headers=headers_for(member_identity))
        assert resp.status_code == 403
        assert resp.json()["error"]["message"] == "Access denied"

    @pytest.mark.asyncio
    async def test_platform_admin_on_any_hub(self, client, hub, add_admin, headers_for):
        await add_admin("root")
        resp = await client.get("/api/v1/hubs/acme/me", headers=headers_for(CallerIdentity(user_id="root")))
        assert resp.status_code == 200
        assert resp.json()["role"] == "default"

    @pytest.mark.asyncio
    async def test_claim_invitation(self, client, hub, add_member, headers_for):
        await add_member(hub, email="new@acme.test")
        invited = CallerIdentity(user_id="user_new", email="new@acme.test")
        resp = await client.post("/api/v1/hubs/acme/me/claim", headers=headers_for(invited))
        assert resp.status_code == 200
        assert resp.json()["user_id"] == "user_new"
        assert resp.json()["status"] == "active"


class TestReads:
    @pytest.mark.asyncio
    async def test_projects_list_shape(self, client, hub, add_member, add_mapping, add_project,
                                       member_identity, headers_for):
        await add_member(hub, user_id=member_identity.user_id)
        await add_mapping(hub, "t1", visible_project_ids=["p1"])
        await add_project("p1", "Website", {"teams": [{"id": "t1"}]})
        await add_project("p2", "Internal", {"teams": [{"id": "t1"}]})

        resp = await client.get("/api/v1/hubs/acme/projects", headers=headers_for(member_identity))
        assert resp.status_code == 200
        assert resp.json() == [{"id": "p1", "name": "Website"}]

    @pytest.mark.asyncio
    async def test_issues_filtered_by_query(self, client, hub, add_member, add_mapping, add_issue,
                                            member_identity, headers_for):
        await add_member(hub, user_id=member_identity.user_id)
        await add_mapping(hub, "t1")
        await add_issue("iss_1", "t1", "p1", assignee={"name": "Sam"})
        await add_issue("iss_2", "t1", "p2")

        resp = await client.get(
            "/api/v1/hubs/acme/issues", params={"projectId": "p1"}, headers=headers_for(member_identity)
        )
        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()] == ["iss_1"]
        assert resp.json()[0]["assignee"] is None

    @pytest.mark.asyncio
    async def test_metadata_unavailable_is_503(self, client, hub, add_member, member_identity, headers_for):
        await add_member(hub, user_id=member_identity.user_id)
        resp = await client.get("/api/v1/hubs/acme/metadata", headers=headers_for(member_identity))
        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_view_only_can_read(self, client, hub, add_member, add_mapping, add_issue,
                                      member_identity, headers_for):
        await add_member(hub, user_id=member_identity.user_id, role="view_only")
        await add_mapping(hub, "t1")
        await add_issue("iss_1", "t1", state={"name": "Todo"})
        resp = await client.get("/api/v1/hubs/acme/metadata", headers=headers_for(member_identity))
        assert resp.status_code == 200
        assert resp.json()["states"][0]["name"] == "Todo"

    @pytest.mark.asyncio
    async def test_issue_comments_outside_scope_is_404(self, client, hub, add_member, member_identity,
                                                       headers_for):
        await add_member(hub, user_id=member_identity.user_id)
        resp = await client.get("/api/v1/hubs/acme/issues/ISSUE-42/comments", headers=headers_for(member_identity))
        assert resp.status_code == 404
