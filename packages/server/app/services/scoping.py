"""
Visibility scoping: narrows shared synced data to what a hub team may see.

Each active ``hub_team_mappings`` row becomes a ``TeamScope``: frozensets
built once per request. An empty allowlist means "no restriction" for that
dimension; a missing mapping means the engine is a no-op for that team.
Filters are stable: output keeps the candidates' relative order.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import InvalidArgument, NotFound
from app.models.hub import ClientHub
from app.models.team_mapping import HubTeamMapping

from clienthub_shared.schemas.scoping import TeamMappingCreate, TeamMappingUpdate
from clienthub_shared.schemas.synced import IssueRead, ProjectSummary

log = structlog.get_logger()


class HasId(Protocol):
    id: str


T = TypeVar("T", bound=HasId)


@dataclass(frozen=True)
class TeamScope:
    team_id: str
    project_ids: frozenset[str] = frozenset()
    initiative_ids: frozenset[str] = frozenset()
    label_ids: frozenset[str] = frozenset()
    hidden_label_ids: frozenset[str] = frozenset()

    @classmethod
    def from_mapping(cls, mapping: HubTeamMapping) -> "TeamScope":
        return cls(
            team_id=mapping.linear_team_id,
            project_ids=frozenset(mapping.visible_project_ids or ()),
            initiative_ids=frozenset(mapping.visible_initiative_ids or ()),
            label_ids=frozenset(mapping.visible_label_ids or ()),
            hidden_label_ids=frozenset(mapping.hidden_label_ids or ()),
        )

    @property
    def is_unrestricted(self) -> bool:
        return not (self.project_ids or self.initiative_ids or self.label_ids or self.hidden_label_ids)

    def allows_project_id(self, project_id: Optional[str]) -> bool:
        if not self.project_ids:
            return True
        return project_id is not None and project_id in self.project_ids

    def allows_initiative_id(self, initiative_id: Optional[str]) -> bool:
        return not self.initiative_ids or initiative_id in self.initiative_ids

    def allows_label_id(self, label_id: str) -> bool:
        return not self.label_ids or label_id in self.label_ids

    def allows_project(self, project: ProjectSummary) -> bool:
        if not self.allows_project_id(project.id):
            return False
        # A project outside every initiative passes the initiative dimension
        if self.initiative_ids and project.initiative_ids:
            return bool(project.initiative_ids & self.initiative_ids)
        return True

    def scope_issue(self, issue: IssueRead) -> Optional[IssueRead]:
        """Return the issue narrowed to visible labels, or None if hidden."""
        if not self.allows_project_id(issue.project_id):
            return None
        if issue.initiative_id and not self.allows_initiative_id(issue.initiative_id):
            return None
        if any(label.id in self.hidden_label_ids for label in issue.labels):
            return None
        if self.label_ids:
            labels = [label for label in issue.labels if label.id in self.label_ids]
            if len(labels) != len(issue.labels):
                issue = issue.model_copy(update={"labels": labels})
        return issue


# ---------------------------------------------------------------------------
# Pure filters
# ---------------------------------------------------------------------------

def scope_projects(scope: Optional[TeamScope], candidates: Sequence[ProjectSummary]) -> list[ProjectSummary]:
    if scope is None:
        return list(candidates)
    return [p for p in candidates if scope.allows_project(p)]


def scope_initiatives(scope: Optional[TeamScope], candidates: Sequence[T]) -> list[T]:
    if scope is None:
        return list(candidates)
    return [i for i in candidates if scope.allows_initiative_id(i.id)]


def scope_labels(scope: Optional[TeamScope], candidates: Sequence[T]) -> list[T]:
    if scope is None:
        return list(candidates)
    return [
        label for label in candidates
        if scope.allows_label_id(label.id) and label.id not in scope.hidden_label_ids
    ]


def scope_issues(scope: Optional[TeamScope], candidates: Sequence[IssueRead]) -> list[IssueRead]:
    if scope is None:
        return list(candidates)
    scoped = (scope.scope_issue(issue) for issue in candidates)
    return [issue for issue in scoped if issue is not None]


def hub_visible_projects(
    scopes: dict[str, TeamScope], candidates: Iterable[ProjectSummary]
) -> list[ProjectSummary]:
    """Keep a project if any hub team it belongs to allows it."""
    return [
        project for project in candidates
        if any(scopes[t].allows_project(project) for t in project.team_ids if t in scopes)
    ]


def hub_visible_issues(
    scopes: dict[str, TeamScope], candidates: Iterable[IssueRead]
) -> list[IssueRead]:
    """Scope each issue by its own team; issues of non-hub teams are dropped."""
    visible = []
    for issue in candidates:
        scope = scopes.get(issue.team_id) if issue.team_id else None
        if scope is None:
            continue
        scoped = scope.scope_issue(issue)
        if scoped is not None:
            visible.append(scoped)
    return visible


# ---------------------------------------------------------------------------
# Scope loading
# ---------------------------------------------------------------------------

async def active_mappings(hub_id: uuid.UUID, session: AsyncSession) -> list[HubTeamMapping]:
    result = await session.execute(
        select(HubTeamMapping)
        .where(HubTeamMapping.hub_id == hub_id, HubTeamMapping.is_active == True)  # noqa: E712
        .order_by(HubTeamMapping.created_at)
    )
    return list(result.scalars().all())


async def load_scope(hub_id: uuid.UUID, team_id: str, session: AsyncSession) -> Optional[TeamScope]:
    result = await session.execute(
        select(HubTeamMapping).where(
            HubTeamMapping.hub_id == hub_id,
            HubTeamMapping.linear_team_id == team_id,
            HubTeamMapping.is_active == True,  # noqa: E712
        )
    )
    mapping = result.scalar_one_or_none()
    return TeamScope.from_mapping(mapping) if mapping else None


async def load_hub_scopes(hub_id: uuid.UUID, session: AsyncSession) -> dict[str, TeamScope]:
    return {m.linear_team_id: TeamScope.from_mapping(m) for m in await active_mappings(hub_id, session)}


async def filter_projects(
    hub_id: uuid.UUID, team_id: str, candidates: Sequence[ProjectSummary], session: AsyncSession
) -> list[ProjectSummary]:
    return scope_projects(await load_scope(hub_id, team_id, session), candidates)


async def filter_initiatives(
    hub_id: uuid.UUID, team_id: str, candidates: Sequence[T], session: AsyncSession
) -> list[T]:
    return scope_initiatives(await load_scope(hub_id, team_id, session), candidates)


async def filter_labels(
    hub_id: uuid.UUID, team_id: str, candidates: Sequence[T], session: AsyncSession
) -> list[T]:
    return scope_labels(await load_scope(hub_id, team_id, session), candidates)


async def filter_issues(
    hub_id: uuid.UUID, team_id: str, candidates: Sequence[IssueRead], session: AsyncSession
) -> list[IssueRead]:
    return scope_issues(await load_scope(hub_id, team_id, session), candidates)


# ---------------------------------------------------------------------------
# Admin: team mapping CRUD
# ---------------------------------------------------------------------------

async def list_mappings(hub: ClientHub, session: AsyncSession) -> list[HubTeamMapping]:
    result = await session.execute(
        select(HubTeamMapping).where(HubTeamMapping.hub_id == hub.id).order_by(HubTeamMapping.created_at)
    )
    return list(result.scalars().all())


async def create_mapping(
    hub: ClientHub, req: TeamMappingCreate, session: AsyncSession
) -> HubTeamMapping:
    existing = await session.execute(
        select(HubTeamMapping).where(
            HubTeamMapping.hub_id == hub.id,
            HubTeamMapping.linear_team_id == req.linear_team_id,
        )
    )
    if existing.scalar_one_or_none():
        raise InvalidArgument("Team is already mapped to this hub", field="linear_team_id")

    mapping = HubTeamMapping(hub_id=hub.id, **req.model_dump())
    session.add(mapping)
    await session.flush()

    log.info("scoping.mapping_created", hub_id=str(hub.id), team_id=req.linear_team_id)
    return mapping


async def _get_mapping(hub: ClientHub, mapping_id: uuid.UUID, session: AsyncSession) -> HubTeamMapping:
    mapping = await session.get(HubTeamMapping, mapping_id)
    if not mapping or mapping.hub_id != hub.id:
        raise NotFound("Team mapping not found")
    return mapping


async def update_mapping(
    hub: ClientHub, mapping_id: uuid.UUID, req: TeamMappingUpdate, session: AsyncSession
) -> HubTeamMapping:
    mapping = await _get_mapping(hub, mapping_id, session)
    for key, value in req.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(mapping, key, value)
    mapping.updated_at = datetime.now(timezone.utc)
    session.add(mapping)
    await session.flush()

    log.info("scoping.mapping_updated", hub_id=str(hub.id), mapping_id=str(mapping.id))
    return mapping


async def delete_mapping(hub: ClientHub, mapping_id: uuid.UUID, session: AsyncSession) -> None:
    mapping = await _get_mapping(hub, mapping_id, session)
    await session.delete(mapping)
    await session.flush()
    log.info("scoping.mapping_deleted", hub_id=str(hub.id), mapping_id=str(mapping_id))
