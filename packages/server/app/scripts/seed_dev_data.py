"""Seed a development database with a demo hub, team mapping and mirror rows.

Usage:
    python -m app.scripts.seed_dev_data [--init-db]

The external sync process normally fills the ``synced_*`` tables; this gives
a local stack something to show before it has run. Safe to run repeatedly.
"""

import argparse
import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import get_session_context, init_db
from app.models.hub import ClientHub
from app.models.hub_member import HubMember
from app.models.synced import SyncedInitiative, SyncedIssue, SyncedProject
from app.models.team_mapping import HubTeamMapping

from clienthub_shared.schemas.common import WORKSPACE_USER_ID

HUB_SLUG = "acme-robotics"
TEAM = {"id": "team_eng", "name": "Engineering"}
INTERNAL_LABEL = {"id": "label_internal", "name": "internal", "color": "#777777"}
STATES = {
    "backlog": {"id": "state_backlog", "name": "Backlog", "color": "#bbbbbb", "type": "backlog"},
    "started": {"id": "state_started", "name": "In Progress", "color": "#f2c94c", "type": "started"},
    "done": {"id": "state_done", "name": "Done", "color": "#5e6ad2", "type": "completed"},
}

PROJECTS = [
    ("proj_api", "API Server", "In Progress"),
    ("proj_docs", "Documentation Site", "Planned"),
    ("proj_ops", "Internal Tooling", "In Progress"),
]

ISSUES = [
    ("iss_1", "ENG-1", "Set up CI pipeline", "proj_api", "done", []),
    ("iss_2", "ENG-2", "Implement auth middleware", "proj_api", "started", []),
    ("iss_3", "ENG-3", "Fix login redirect bug", "proj_api", "started", []),
    ("iss_4", "ENG-4", "Rotate staging credentials", "proj_api", "backlog", [INTERNAL_LABEL]),
    ("iss_5", "ENG-5", "Write contribution guide", "proj_docs", "backlog", []),
    ("iss_6", "ENG-6", "Add search endpoint", "proj_docs", "backlog", []),
    ("iss_7", "ENG-7", "Migrate build agents", "proj_ops", "started", []),
]


async def _upsert(session: AsyncSession, model, values: dict, **key) -> None:
    row = await session.get(model, key)
    if row is None:
        session.add(model(**key, **values))
    else:
        for field, value in values.items():
            setattr(row, field, value)
        session.add(row)


async def seed(session: AsyncSession, member_email: Optional[str] = None) -> ClientHub:
    """Create (or refresh) the demo hub and its mirror rows; returns the hub."""
    result = await session.execute(select(ClientHub).where(ClientHub.slug == HUB_SLUG))
    hub = result.scalar_one_or_none()
    if hub is None:
        hub = ClientHub(slug=HUB_SLUG, name="Acme Robotics", created_by="seed")
        session.add(hub)
        await session.flush()

    # The internal tooling project stays off the hub's allowlist
    result = await session.execute(
        select(HubTeamMapping).where(
            HubTeamMapping.hub_id == hub.id, HubTeamMapping.linear_team_id == TEAM["id"]
        )
    )
    if result.scalar_one_or_none() is None:
        session.add(HubTeamMapping(
            hub_id=hub.id,
            linear_team_id=TEAM["id"],
            linear_team_name=TEAM["name"],
            visible_project_ids=["proj_api", "proj_docs"],
            hidden_label_ids=[INTERNAL_LABEL["id"]],
        ))

    if member_email:
        email = member_email.strip().lower()
        result = await session.execute(
            select(HubMember).where(HubMember.hub_id == hub.id, HubMember.email == email)
        )
        if result.scalar_one_or_none() is None:
            session.add(HubMember(hub_id=hub.id, email=email, role="default", invited_by="seed"))

    await _upsert(
        session,
        SyncedInitiative,
        {"name": "Platform 2.0", "status": "Active", "data": {"name": "Platform 2.0"}},
        linear_id="init_platform",
        user_id=WORKSPACE_USER_ID,
    )

    for linear_id, name, status in PROJECTS:
        await _upsert(
            session,
            SyncedProject,
            {
                "name": name,
                "status_name": status,
                "data": {
                    "name": name,
                    "status": {"name": status},
                    "teams": {"nodes": [TEAM]},
                    "initiatives": {"nodes": [{"id": "init_platform"}]},
                },
            },
            linear_id=linear_id,
            user_id=WORKSPACE_USER_ID,
        )

    for linear_id, identifier, title, project_id, state, labels in ISSUES:
        await _upsert(
            session,
            SyncedIssue,
            {
                "team_id": TEAM["id"],
                "project_id": project_id,
                "state_name": STATES[state]["name"],
                "data": {
                    "identifier": identifier,
                    "title": title,
                    "priority": 2,
                    "url": f"https://linear.app/acme/issue/{identifier}",
                    "state": STATES[state],
                    "team": TEAM,
                    "project": {"id": project_id},
                    "labels": {"nodes": labels},
                    "assignee": {"id": "lin_user_alice", "name": "Alice"},
                },
            },
            linear_id=linear_id,
            user_id=WORKSPACE_USER_ID,
        )

    await session.flush()
    return hub


async def _run(member_email: Optional[str], create_tables: bool) -> None:
    if create_tables:
        await init_db()
    async with get_session_context() as session:
        hub = await seed(session, member_email)
    print(f"Seeded hub '{hub.slug}' with {len(PROJECTS)} projects and {len(ISSUES)} issues.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed a development database with demo hub data.")
    parser.add_argument("--member-email", help="Invite this email to the demo hub")
    parser.add_argument("--init-db", action="store_true", help="Create tables first (development only)")
    args = parser.parse_args(argv)
    asyncio.run(_run(args.member_email, args.init_db))


if __name__ == "__main__":
    main()
