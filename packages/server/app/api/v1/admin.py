"""
Administrative endpoints (platform admins only): workspace token, hub
lifecycle, members, team mappings, Linear lookups and comment retry.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CallerIdentity, require_platform_admin
from app.core.database import get_session
from app.core.errors import InvalidArgument
from app.core.linear import LinearClient, get_linear_client
from app.core.workos import OrganizationDirectory, get_organization_directory
from app.services import comments, hubs, membership, scoping, synced
from app.services.comments import CommentPusher, get_comment_pusher
from app.services.workspace import WorkspaceCredentials, get_workspace_credentials

from clienthub_shared.schemas.comments import CommentRead
from clienthub_shared.schemas.common import PushStatus
from clienthub_shared.schemas.hubs import (
    HubCreateRequest,
    HubRead,
    HubUpdateRequest,
    MemberInviteRequest,
    MemberRead,
    MemberRoleUpdate,
    PlatformAdminGrant,
)
from clienthub_shared.schemas.scoping import TeamMappingCreate, TeamMappingRead, TeamMappingUpdate
from clienthub_shared.schemas.synced import Metadata, ProjectSummary
from clienthub_shared.schemas.workspace import (
    TokenSetRequest,
    TokenSetResponse,
    TokenStatus,
    ViewerRead,
)

router = APIRouter(dependencies=[Depends(require_platform_admin)])


# ---------------------------------------------------------------------------
# Workspace token
# ---------------------------------------------------------------------------


@router.get("/workspace/token", response_model=TokenStatus)
async def get_token_status(credentials: WorkspaceCredentials = Depends(get_workspace_credentials)):
    return TokenStatus(configured=await credentials.has_token())


@router.put("/workspace/token", response_model=TokenSetResponse)
async def set_token(
    body: TokenSetRequest,
    admin: CallerIdentity = Depends(require_platform_admin),
    credentials: WorkspaceCredentials = Depends(get_workspace_credentials),
):
    """Validate the token against Linear and replace the stored one."""
    viewer = await credentials.set_token(body.token, admin.user_id)
    return TokenSetResponse(viewer=ViewerRead(name=viewer.viewer_name, email=viewer.viewer_email))


# ---------------------------------------------------------------------------
# Hubs
# ---------------------------------------------------------------------------


@router.get("/hubs", response_model=List[HubRead])
async def list_hubs(session: AsyncSession = Depends(get_session)):
    return await hubs.list_hubs(session)


@router.post("/hubs", response_model=HubRead, status_code=status.HTTP_201_CREATED)
async def create_hub(
    body: HubCreateRequest,
    admin: CallerIdentity = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    return await hubs.create_hub(body, admin.user_id, session)


@router.get("/hubs/{hubId}", response_model=HubRead)
async def get_hub(hubId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return await hubs.get_hub(hubId, session)


@router.patch("/hubs/{hubId}", response_model=HubRead)
async def update_hub(
    hubId: uuid.UUID,
    body: HubUpdateRequest,
    directory: OrganizationDirectory = Depends(get_organization_directory),
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    return await hubs.update_hub(hub, body, directory, session)


@router.delete("/hubs/{hubId}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_hub(
    hubId: uuid.UUID,
    directory: OrganizationDirectory = Depends(get_organization_directory),
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    await hubs.delete_hub(hub, directory, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/hubs/{hubId}/organization", response_model=HubRead)
async def link_hub_organization(
    hubId: uuid.UUID,
    directory: OrganizationDirectory = Depends(get_organization_directory),
    session: AsyncSession = Depends(get_session),
):
    """Create the hub's identity-provider organization if it has none yet."""
    hub = await hubs.get_hub(hubId, session)
    await hubs.ensure_hub_organization(hub, directory, session)
    return hub


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/hubs/{hubId}/members", response_model=List[MemberRead])
async def list_members(hubId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    hub = await hubs.get_hub(hubId, session)
    return [membership.member_read(m) for m in await membership.list_members(hub, session)]


@router.post("/hubs/{hubId}/members", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
async def invite_member(
    hubId: uuid.UUID,
    body: MemberInviteRequest,
    admin: CallerIdentity = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    member = await membership.invite_member(hub, body.email, body.role, admin.user_id, session)
    return membership.member_read(member)


@router.patch("/hubs/{hubId}/members/{memberId}", response_model=MemberRead)
async def update_member_role(
    hubId: uuid.UUID,
    memberId: uuid.UUID,
    body: MemberRoleUpdate,
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    member = await membership.update_member_role(hub, memberId, body.role, session)
    return membership.member_read(member)


@router.delete("/hubs/{hubId}/members/{memberId}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    hubId: uuid.UUID,
    memberId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    await membership.remove_member(hub, memberId, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Team mappings (visibility scoping)
# ---------------------------------------------------------------------------


@router.get("/hubs/{hubId}/teams", response_model=List[TeamMappingRead])
async def list_team_mappings(hubId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    hub = await hubs.get_hub(hubId, session)
    return await scoping.list_mappings(hub, session)


@router.post("/hubs/{hubId}/teams", response_model=TeamMappingRead, status_code=status.HTTP_201_CREATED)
async def create_team_mapping(
    hubId: uuid.UUID,
    body: TeamMappingCreate,
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    return await scoping.create_mapping(hub, body, session)


@router.patch("/hubs/{hubId}/teams/{mappingId}", response_model=TeamMappingRead)
async def update_team_mapping(
    hubId: uuid.UUID,
    mappingId: uuid.UUID,
    body: TeamMappingUpdate,
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    return await scoping.update_mapping(hub, mappingId, body, session)


@router.delete("/hubs/{hubId}/teams/{mappingId}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_mapping(
    hubId: uuid.UUID,
    mappingId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    hub = await hubs.get_hub(hubId, session)
    await scoping.delete_mapping(hub, mappingId, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Linear lookups (unscoped, for configuring mappings)
# ---------------------------------------------------------------------------


@router.get("/linear/teams/{teamId}/projects", response_model=List[ProjectSummary])
async def list_team_projects(
    teamId: str,
    credentials: WorkspaceCredentials = Depends(get_workspace_credentials),
    linear: LinearClient = Depends(get_linear_client),
    session: AsyncSession = Depends(get_session),
):
    return await synced.projects_for_team(teamId, credentials, linear, session)


@router.get("/metadata", response_model=Metadata)
async def get_metadata(
    project_id: Optional[str] = Query(None, alias="projectId"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    session: AsyncSession = Depends(get_session),
):
    return await synced.metadata_for(session, project_id=project_id, team_id=team_id)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/comments", response_model=List[CommentRead])
async def list_comments(
    push_status: PushStatus = Query(PushStatus.FAILED, alias="status"),
    hub_id: Optional[uuid.UUID] = Query(None, alias="hubId"),
    session: AsyncSession = Depends(get_session),
):
    return await comments.list_comments_by_status(push_status, session, hub_id=hub_id)


@router.post("/comments/{commentId}/retry", response_model=CommentRead)
async def retry_comment(
    commentId: uuid.UUID,
    pusher: CommentPusher = Depends(get_comment_pusher),
    session: AsyncSession = Depends(get_session),
):
    """Push a pending/failed comment again, keeping its id."""
    return await comments.retry_comment(commentId, pusher, session)


# ---------------------------------------------------------------------------
# Platform admins
# ---------------------------------------------------------------------------


@router.post("/platform-admins", status_code=status.HTTP_201_CREATED)
async def grant_platform_admin(
    body: PlatformAdminGrant,
    session: AsyncSession = Depends(get_session),
):
    admin = await membership.grant_platform_admin(body.user_id, session)
    return {"user_id": admin.user_id, "created_at": admin.created_at}


@router.delete("/platform-admins/{userId}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_platform_admin(
    userId: str,
    admin: CallerIdentity = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    if userId == admin.user_id:
        raise InvalidArgument("Cannot revoke your own platform-admin grant", field="userId")
    await membership.revoke_platform_admin(userId, session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
