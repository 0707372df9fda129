"""
Synced-data reader: serves projects, issues and metadata from the local
Linear mirror, with a live read-through for teams the mirror has not seen.

Mirror rows keep Linear's payload in ``data``. Team and initiative references
come in several shapes (``team`` object, ``teams`` list, ``teams.nodes``
connection); they are normalized to frozensets as soon as a row is read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotConfigured, Unavailable
from app.core.linear import LinearClient
from app.models.hub import ClientHub
from app.models.synced import SyncedIssue, SyncedProject
from app.services import scoping
from app.services.workspace import CredentialProvider

from clienthub_shared.schemas.common import WORKSPACE_USER_ID
from clienthub_shared.schemas.synced import (
    IssueRead,
    LabelRead,
    MemberRef,
    Metadata,
    ProjectSummary,
    StateRead,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------

def _nodes(value: Any) -> list[dict]:
    """Flatten a single object, a list, or a ``{nodes: [...]}`` connection."""
    if isinstance(value, dict):
        if "nodes" in value:
            value = value.get("nodes") or []
        else:
            return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, dict)]
    return []


def _ids(*values: Any) -> frozenset[str]:
    return frozenset(n["id"] for v in values for n in _nodes(v) if n.get("id"))


def team_ids_of(data: dict) -> frozenset[str]:
    return _ids(data.get("team"), data.get("teams"))


def _iso(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    return value or None


def project_from_data(project_id: str, data: dict, *, name: Optional[str] = None,
                      status: Optional[str] = None) -> ProjectSummary:
    status_obj = data.get("status")
    if isinstance(status_obj, dict):
        status = status or status_obj.get("name")
    elif isinstance(status_obj, str):
        status = status or status_obj
    return ProjectSummary(
        id=project_id,
        name=name or data.get("name") or "",
        status=status,
        color=data.get("color"),
        icon=data.get("icon"),
        team_ids=team_ids_of(data),
        initiative_ids=_ids(data.get("initiative"), data.get("initiatives")),
    )


def project_from_row(row: SyncedProject) -> ProjectSummary:
    return project_from_data(row.linear_id, row.data or {}, name=row.name, status=row.status_name)


def issue_from_row(row: SyncedIssue) -> IssueRead:
    d = row.data or {}

    state = d.get("state")
    if isinstance(state, dict) and state.get("name"):
        state_read = StateRead(
            id=state.get("id") or "",
            name=state["name"],
            color=state.get("color") or "",
            type=state.get("type") or "",
        )
    else:
        state_read = StateRead(name=row.state_name or "Unknown")

    assignee = d.get("assignee")
    if isinstance(assignee, dict) and assignee.get("name"):
        assignee_ref = MemberRef(id=assignee.get("id") or "", name=assignee["name"])
    elif isinstance(assignee, str) and assignee:
        assignee_ref = MemberRef(name=assignee)
    else:
        assignee_ref = None

    labels = [
        LabelRead(id=label["id"], name=label.get("name") or "", color=label.get("color") or "")
        for label in _nodes(d.get("labels"))
        if label.get("id")
    ]

    project = d.get("project") if isinstance(d.get("project"), dict) else {}
    initiative = d.get("initiative") if isinstance(d.get("initiative"), dict) else {}
    team_id = row.team_id or next(iter(sorted(team_ids_of(d))), None)

    return IssueRead(
        id=row.linear_id,
        identifier=d.get("identifier") or "",
        title=d.get("title") or "",
        priority=d.get("priority") or 0,
        url=d.get("url") or "",
        team_id=team_id,
        project_id=row.project_id or project.get("id"),
        initiative_id=initiative.get("id") or d.get("initiativeId"),
        state=state_read,
        assignee=assignee_ref,
        labels=labels,
        due_date=d.get("dueDate"),
        created_at=d.get("createdAt") or _iso(row.created_at),
        updated_at=d.get("updatedAt") or _iso(row.updated_at),
    )


def metadata_of(issues: Iterable[IssueRead], *, with_members: bool = True) -> Metadata:
    """Distinct states (by name), labels (by id) and assignees, in first-seen order."""
    states: dict[str, StateRead] = {}
    labels: dict[str, LabelRead] = {}
    members: dict[str, MemberRef] = {}
    for issue in issues:
        if issue.state and issue.state.name:
            states.setdefault(issue.state.name, issue.state)
        for label in issue.labels:
            labels.setdefault(label.id, label)
        if with_members and issue.assignee:
            members.setdefault(issue.assignee.name, issue.assignee)
    return Metadata(states=list(states.values()), labels=list(labels.values()), members=list(members.values()))


# ---------------------------------------------------------------------------
# Mirror queries
# ---------------------------------------------------------------------------

async def mirror_populated(session: AsyncSession) -> bool:
    """True once the sync process has written anything for the workspace."""
    for model in (SyncedIssue, SyncedProject):
        result = await session.execute(
            select(model.linear_id).where(model.user_id == WORKSPACE_USER_ID).limit(1)
        )
        if result.first() is not None:
            return True
    return False


async def _mirrored_projects(session: AsyncSession) -> list[ProjectSummary]:
    result = await session.execute(
        select(SyncedProject)
        .where(SyncedProject.user_id == WORKSPACE_USER_ID)
        .order_by(SyncedProject.name)
    )
    return [project_from_row(row) for row in result.scalars().all()]


async def _mirrored_issues(
    session: AsyncSession,
    *,
    team_ids: Optional[Iterable[str]] = None,
    project_id: Optional[str] = None,
    issue_id: Optional[str] = None,
) -> list[IssueRead]:
    query = select(SyncedIssue).where(SyncedIssue.user_id == WORKSPACE_USER_ID)
    if team_ids is not None:
        query = query.where(SyncedIssue.team_id.in_(list(team_ids)))
    if project_id:
        query = query.where(SyncedIssue.project_id == project_id)
    if issue_id:
        query = query.where(SyncedIssue.linear_id == issue_id)
    result = await session.execute(query.order_by(SyncedIssue.updated_at.desc()))
    return [issue_from_row(row) for row in result.scalars().all()]


async def _team_projects(
    team_id: str,
    mirrored: list[ProjectSummary],
    credentials: CredentialProvider,
    linear: LinearClient,
) -> list[ProjectSummary]:
    own = [p for p in mirrored if team_id in p.team_ids]
    if own:
        return own

    try:
        token = await credentials.get_token()
    except NotConfigured:
        log.info("synced.fallback_skipped", team_id=team_id, reason="no_token")
        return []

    nodes = await linear.team_projects(token, team_id)
    log.info("synced.fallback_live", team_id=team_id, count=len(nodes))
    projects = [project_from_data(n["id"], n) for n in nodes if n.get("id")]
    # Projects fetched through the team are always that team's
    return [
        p if team_id in p.team_ids else p.model_copy(update={"team_ids": p.team_ids | {team_id}})
        for p in projects
    ]


async def projects_for_team(
    team_id: str,
    credentials: CredentialProvider,
    linear: LinearClient,
    session: AsyncSession,
) -> list[ProjectSummary]:
    """Mirror first; a live Linear query only when the mirror has nothing for the team."""
    return await _team_projects(team_id, await _mirrored_projects(session), credentials, linear)


async def metadata_for(
    session: AsyncSession,
    project_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> Metadata:
    if not await mirror_populated(session):
        raise Unavailable("synced mirror has never been populated")
    issues = await _mirrored_issues(
        session, team_ids=[team_id] if team_id else None, project_id=project_id
    )
    return metadata_of(issues)


# ---------------------------------------------------------------------------
# Hub-scoped reads
# ---------------------------------------------------------------------------

async def hub_projects(
    hub: ClientHub,
    credentials: CredentialProvider,
    linear: LinearClient,
    session: AsyncSession,
) -> list[ProjectSummary]:
    """Projects of the hub teams that at least one of their hub teams allows."""
    scopes = await scoping.load_hub_scopes(hub.id, session)
    if not scopes:
        return []

    mirrored = await _mirrored_projects(session)
    candidates: dict[str, ProjectSummary] = {}
    for team_id in scopes:
        for project in await _team_projects(team_id, mirrored, credentials, linear):
            known = candidates.get(project.id)
            if known is None:
                candidates[project.id] = project
            elif not project.team_ids <= known.team_ids:
                candidates[project.id] = known.model_copy(
                    update={"team_ids": known.team_ids | project.team_ids}
                )
    return scoping.hub_visible_projects(scopes, candidates.values())


def _strip_assignee(issue: IssueRead) -> IssueRead:
    return issue.model_copy(update={"assignee": None}) if issue.assignee else issue


async def hub_issues(
    hub: ClientHub,
    session: AsyncSession,
    project_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> list[IssueRead]:
    scopes = await scoping.load_hub_scopes(hub.id, session)
    if team_id is not None:
        if team_id not in scopes:
            return []
        scopes = {team_id: scopes[team_id]}
    if not scopes:
        return []

    issues = await _mirrored_issues(session, team_ids=scopes.keys(), project_id=project_id)
    return [_strip_assignee(i) for i in scoping.hub_visible_issues(scopes, issues)]


async def hub_issue(hub: ClientHub, issue_id: str, session: AsyncSession) -> Optional[IssueRead]:
    """A single issue if the hub may see it."""
    scopes = await scoping.load_hub_scopes(hub.id, session)
    if not scopes:
        return None
    issues = await _mirrored_issues(session, team_ids=scopes.keys(), issue_id=issue_id)
    visible = scoping.hub_visible_issues(scopes, issues)
    return _strip_assignee(visible[0]) if visible else None


async def hub_metadata(
    hub: ClientHub,
    session: AsyncSession,
    project_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> Metadata:
    """States and hub-visible labels of the hub's issues. No assignees."""
    if not await mirror_populated(session):
        raise Unavailable("synced mirror has never been populated")
    issues = await hub_issues(hub, session, project_id=project_id, team_id=team_id)
    return metadata_of(issues, with_members=False)
