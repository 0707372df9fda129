"""
Hub portal endpoints: the caller's membership, scoped projects/issues/metadata,
and client comments.

Every route is hub-scoped (``/hubs/{hubSlug}``) and authorized once by
``require_hub_reader`` / ``require_hub_writer``; nothing below re-checks access.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_hub_reader, require_hub_writer
from app.core.database import get_session
from app.core.linear import LinearClient, get_linear_client
from app.services import comments, membership, synced
from app.services.comments import CommentPusher, get_comment_pusher
from app.services.membership import HubAccess
from app.services.workspace import WorkspaceCredentials, get_workspace_credentials

from clienthub_shared.schemas.comments import CommentCreate, CommentRead
from clienthub_shared.schemas.hubs import MemberRead, MembershipRead
from clienthub_shared.schemas.synced import IssueRead, Metadata, ProjectListItem

router = APIRouter()


@router.get("/me", response_model=MembershipRead)
async def get_my_membership(access: HubAccess = Depends(require_hub_reader)):
    identity = access.identity
    return MembershipRead(
        user_id=identity.user_id,
        email=identity.email,
        first_name=identity.first_name,
        last_name=identity.last_name,
        role=access.role,
        hub_id=access.hub.id,
        hub_name=access.hub.name,
        is_view_only=access.is_view_only,
        request_forms_enabled=access.hub.request_forms_enabled,
    )


@router.post("/me/claim", response_model=MemberRead)
async def claim_my_invitation(
    access: HubAccess = Depends(require_hub_reader),
    session: AsyncSession = Depends(get_session),
):
    """Bind the caller's user id to their pending email invitation."""
    member = await membership.claim_invitation(access.hub, access.identity, session)
    return membership.member_read(member)


@router.get("/projects", response_model=List[ProjectListItem])
async def list_projects(
    access: HubAccess = Depends(require_hub_reader),
    credentials: WorkspaceCredentials = Depends(get_workspace_credentials),
    linear: LinearClient = Depends(get_linear_client),
    session: AsyncSession = Depends(get_session),
):
    projects = await synced.hub_projects(access.hub, credentials, linear, session)
    return [ProjectListItem(id=p.id, name=p.name) for p in projects]


@router.get("/issues", response_model=List[IssueRead])
async def list_issues(
    project_id: Optional[str] = Query(None, alias="projectId"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    access: HubAccess = Depends(require_hub_reader),
    session: AsyncSession = Depends(get_session),
):
    return await synced.hub_issues(access.hub, session, project_id=project_id, team_id=team_id)


@router.get("/metadata", response_model=Metadata)
async def get_metadata(
    project_id: Optional[str] = Query(None, alias="projectId"),
    team_id: Optional[str] = Query(None, alias="teamId"),
    access: HubAccess = Depends(require_hub_reader),
    session: AsyncSession = Depends(get_session),
):
    return await synced.hub_metadata(access.hub, session, project_id=project_id, team_id=team_id)


@router.get("/issues/{issueId}/comments", response_model=List[CommentRead])
async def list_issue_comments(
    issueId: str,
    access: HubAccess = Depends(require_hub_reader),
    session: AsyncSession = Depends(get_session),
):
    return await comments.list_issue_comments(access.hub, issueId, session)


@router.post("/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CommentCreate,
    access: HubAccess = Depends(require_hub_writer),
    pusher: CommentPusher = Depends(get_comment_pusher),
    session: AsyncSession = Depends(get_session),
):
    """Store the comment and push it to Linear. A failed push is still a 201."""
    return await comments.submit_comment(
        access.hub, body.issue_linear_id, access.identity, body.body, pusher, session
    )
