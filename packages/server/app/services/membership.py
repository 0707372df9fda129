"""
Membership & role resolution for hub requests.

``authorize`` evaluates an ordered sequence of strategies; each one either
grants a role, denies, or passes to the next. Nothing here writes to the
database except the explicit admin/claim helpers further down.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from app.core.errors import DataIntegrityError, Denied, InvalidArgument, NotFound
from app.models.hub import ClientHub
from app.models.hub_member import HubMember
from app.models.platform_admin import PlatformAdmin

from clienthub_shared.schemas.common import Capability, HubRole
from clienthub_shared.schemas.hubs import MemberRead

if TYPE_CHECKING:
    from app.core.auth import CallerIdentity

log = structlog.get_logger()


@dataclass(frozen=True)
class HubAccess:
    """Outcome of a successful authorization: the hub, the caller, their role."""

    hub: ClientHub
    identity: CallerIdentity
    role: HubRole
    via: str

    @property
    def is_view_only(self) -> bool:
        return self.role == HubRole.VIEW_ONLY


@dataclass(frozen=True)
class Grant:
    role: HubRole


@dataclass(frozen=True)
class Deny:
    reason: str


Decision = Optional[Union[Grant, Deny]]  # None = next strategy
Strategy = Callable[[ClientHub, "CallerIdentity", AsyncSession], Awaitable[Decision]]


async def _one_member(session: AsyncSession, *criteria) -> Optional[HubMember]:
    result = await session.execute(select(HubMember).where(*criteria))
    rows = result.scalars().all()
    if len(rows) > 1:
        raise DataIntegrityError(f"{len(rows)} membership rows match one identity")
    return rows[0] if rows else None


async def is_platform_admin(user_id: str, session: AsyncSession) -> bool:
    return await session.get(PlatformAdmin, user_id) is not None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

async def platform_admin(hub: ClientHub, identity: CallerIdentity, session: AsyncSession) -> Decision:
    if await is_platform_admin(identity.user_id, session):
        return Grant(HubRole.DEFAULT)
    return None


async def organization_claim(hub: ClientHub, identity: CallerIdentity, session: AsyncSession) -> Decision:
    if not identity.organization_id or identity.organization_id != hub.workos_org_id:
        return None
    member = await _one_member(
        session, HubMember.hub_id == hub.id, HubMember.user_id == identity.user_id
    )
    if member is None:
        return Deny("organization matches but no membership row")
    return Grant(HubRole(member.role))


async def email_invite(hub: ClientHub, identity: CallerIdentity, session: AsyncSession) -> Decision:
    if not identity.email:
        return Deny("no organization match and no email claim")
    member = await _one_member(
        session,
        HubMember.hub_id == hub.id,
        HubMember.email == identity.email.lower(),
        or_(HubMember.user_id == None, HubMember.user_id == identity.user_id),  # noqa: E711
    )
    if member is None:
        return Deny("no invitation for email")
    return Grant(HubRole(member.role))


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("platform_admin", platform_admin),
    ("organization_claim", organization_claim),
    ("email_invite", email_invite),
)


async def authorize(
    hub: ClientHub,
    identity: CallerIdentity,
    capability: Capability,
    session: AsyncSession,
    strategies: tuple[tuple[str, Strategy], ...] = STRATEGIES,
) -> HubAccess:
    """Decide whether ``identity`` may use ``hub`` with ``capability``."""
    for name, strategy in strategies:
        decision = await strategy(hub, identity, session)
        if decision is None:
            continue
        if isinstance(decision, Deny):
            log.info("membership.denied", hub_id=str(hub.id), user_id=identity.user_id, strategy=name)
            raise Denied(decision.reason)
        if capability == Capability.WRITE and decision.role == HubRole.VIEW_ONLY:
            log.info("membership.write_denied", hub_id=str(hub.id), user_id=identity.user_id)
            raise Denied("view-only role cannot write")
        return HubAccess(hub=hub, identity=identity, role=decision.role, via=name)

    raise Denied("no strategy decided")


# ---------------------------------------------------------------------------
# Invitation claim and admin member management
# ---------------------------------------------------------------------------

def member_read(member: HubMember) -> MemberRead:
    return MemberRead(
        id=member.id,
        hub_id=member.hub_id,
        user_id=member.user_id,
        email=member.email,
        role=HubRole(member.role),
        status="active" if member.user_id else "invited",
        created_at=member.created_at,
    )


async def claim_invitation(
    hub: ClientHub, identity: CallerIdentity, session: AsyncSession
) -> HubMember:
    """Attach the caller's user id to the pending invitation for their email."""
    existing = await _one_member(
        session, HubMember.hub_id == hub.id, HubMember.user_id == identity.user_id
    )
    if existing:
        return existing
    if not identity.email:
        raise NotFound("No pending invitation")

    invite = await _one_member(
        session,
        HubMember.hub_id == hub.id,
        HubMember.email == identity.email.lower(),
        HubMember.user_id == None,  # noqa: E711
    )
    if invite is None:
        raise NotFound("No pending invitation")

    invite.user_id = identity.user_id
    invite.updated_at = datetime.now(timezone.utc)
    session.add(invite)
    await session.flush()

    log.info("membership.claimed", hub_id=str(hub.id), member_id=str(invite.id), user_id=identity.user_id)
    return invite


async def list_members(hub: ClientHub, session: AsyncSession) -> list[HubMember]:
    result = await session.execute(
        select(HubMember).where(HubMember.hub_id == hub.id).order_by(HubMember.created_at)
    )
    return list(result.scalars().all())


async def invite_member(
    hub: ClientHub,
    email: str,
    role: HubRole,
    actor_id: str,
    session: AsyncSession,
) -> HubMember:
    email = email.strip().lower()
    if await _one_member(session, HubMember.hub_id == hub.id, HubMember.email == email):
        raise InvalidArgument("Email is already invited to this hub", field="email")

    member = HubMember(hub_id=hub.id, email=email, role=role.value, invited_by=actor_id)
    session.add(member)
    await session.flush()

    log.info("membership.invited", hub_id=str(hub.id), member_id=str(member.id), role=role.value)
    return member


async def _get_member(hub: ClientHub, member_id: uuid.UUID, session: AsyncSession) -> HubMember:
    member = await session.get(HubMember, member_id)
    if not member or member.hub_id != hub.id:
        raise NotFound("Member not found")
    return member


async def update_member_role(
    hub: ClientHub, member_id: uuid.UUID, role: HubRole, session: AsyncSession
) -> HubMember:
    member = await _get_member(hub, member_id, session)
    member.role = role.value
    member.updated_at = datetime.now(timezone.utc)
    session.add(member)
    await session.flush()

    log.info("membership.role_changed", hub_id=str(hub.id), member_id=str(member.id), role=role.value)
    return member


async def remove_member(hub: ClientHub, member_id: uuid.UUID, session: AsyncSession) -> None:
    member = await _get_member(hub, member_id, session)
    await session.delete(member)
    await session.flush()
    log.info("membership.removed", hub_id=str(hub.id), member_id=str(member_id))


async def grant_platform_admin(user_id: str, session: AsyncSession) -> PlatformAdmin:
    admin = await session.get(PlatformAdmin, user_id)
    if admin is None:
        admin = PlatformAdmin(user_id=user_id)
        session.add(admin)
        await session.flush()
        log.info("admin.granted", user_id=user_id)
    return admin


async def revoke_platform_admin(user_id: str, session: AsyncSession) -> None:
    admin = await session.get(PlatformAdmin, user_id)
    if admin is None:
        raise NotFound("Platform admin not found")
    await session.delete(admin)
    await session.flush()
    log.info("admin.revoked", user_id=user_id)
