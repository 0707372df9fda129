"""
Shared fixtures: in-memory SQLite database, seeded hubs, session tokens and
an ASGI client with the database and upstream collaborators overridden.
"""

import os

os.environ.setdefault("HUB_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("HUB_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("HUB_ENCRYPTION_KEY", "test-encryption-key")
os.environ.setdefault("HUB_LOG_FORMAT", "text")

from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401  (register tables)
from app.core.auth import CallerIdentity, create_session_token
from app.core.database import get_session
from app.core.errors import NotConfigured
from app.models.hub import ClientHub
from app.models.hub_member import HubMember
from app.models.platform_admin import PlatformAdmin
from app.models.synced import SyncedIssue, SyncedProject
from app.models.team_mapping import HubTeamMapping

from clienthub_shared.schemas.common import WORKSPACE_USER_ID


class FakeCredentials:
    """In-memory stand-in for WorkspaceCredentials."""

    def __init__(self, token: Optional[str] = None):
        self.token = token

    async def get_token(self) -> str:
        if self.token is None:
            raise NotConfigured("no workspace token stored")
        return self.token

    async def has_token(self) -> bool:
        return self.token is not None


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s


@pytest.fixture
async def hub(session) -> ClientHub:
    """The "acme" hub linked to organization org_acme."""
    h = ClientHub(slug="acme", name="Acme Corp", workos_org_id="org_acme")
    session.add(h)
    await session.commit()
    return h


@pytest.fixture
def add_member(session):
    async def _add(hub: ClientHub, *, user_id=None, email=None, role="default") -> HubMember:
        member = HubMember(hub_id=hub.id, user_id=user_id, email=email, role=role)
        session.add(member)
        await session.commit()
        return member

    return _add


@pytest.fixture
def add_admin(session):
    async def _add(user_id: str) -> PlatformAdmin:
        admin = PlatformAdmin(user_id=user_id)
        session.add(admin)
        await session.commit()
        return admin

    return _add


@pytest.fixture
def add_mapping(session):
    async def _add(hub: ClientHub, team_id: str, **allowlists) -> HubTeamMapping:
        mapping = HubTeamMapping(hub_id=hub.id, linear_team_id=team_id, **allowlists)
        session.add(mapping)
        await session.commit()
        return mapping

    return _add


@pytest.fixture
def add_project(session):
    async def _add(linear_id: str, name: str, data: Optional[dict] = None) -> SyncedProject:
        row = SyncedProject(linear_id=linear_id, user_id=WORKSPACE_USER_ID, name=name, data=data or {})
        session.add(row)
        await session.commit()
        return row

    return _add


@pytest.fixture
def add_issue(session):
    async def _add(linear_id: str, team_id: str, project_id: Optional[str] = None,
                   **data) -> SyncedIssue:
        row = SyncedIssue(
            linear_id=linear_id,
            user_id=WORKSPACE_USER_ID,
            team_id=team_id,
            project_id=project_id,
            data={"identifier": linear_id.upper(), "title": f"Issue {linear_id}", **data},
        )
        session.add(row)
        await session.commit()
        return row

    return _add


def bearer(identity: CallerIdentity) -> dict:
    return {"Authorization": f"Bearer {create_session_token(identity)}"}


@pytest.fixture
def member_identity() -> CallerIdentity:
    return CallerIdentity(
        user_id="user_member",
        email="jane@acme.test",
        first_name="Jane",
        last_name="Doe",
        organization_id="org_acme",
    )


@pytest.fixture
def api(session):
    """ASGI client whose requests share the test session."""
    from app.main import create_app

    application = create_app()

    async def _session_override():
        yield session
        await session.commit()

    application.dependency_overrides[get_session] = _session_override
    return application


@pytest.fixture
async def client(api):
    async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def fake_credentials():
    return FakeCredentials
