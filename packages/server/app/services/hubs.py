"""
Hub service: slug resolution and admin lifecycle of client hubs.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import HubError, HubNotFound, InvalidArgument, StorageError
from app.core.workos import OrganizationDirectory
from app.models.hub import ClientHub

from clienthub_shared.schemas.hubs import HubCreateRequest, HubUpdateRequest

log = structlog.get_logger()


async def resolve_by_slug(slug: str, session: AsyncSession) -> ClientHub:
    """Exact-match lookup on the immutable slug. Inactive hubs do not exist."""
    result = await session.execute(
        select(ClientHub).where(ClientHub.slug == slug, ClientHub.is_active == True)  # noqa: E712
    )
    hub = result.scalar_one_or_none()
    if not hub:
        raise HubNotFound(f"no active hub with slug {slug!r}")
    return hub


async def get_hub(hub_id: uuid.UUID, session: AsyncSession) -> ClientHub:
    hub = await session.get(ClientHub, hub_id)
    if not hub:
        raise HubNotFound(f"no hub with id {hub_id}")
    return hub


async def list_hubs(session: AsyncSession) -> list[ClientHub]:
    result = await session.execute(select(ClientHub).order_by(ClientHub.name))
    return list(result.scalars().all())


async def create_hub(
    req: HubCreateRequest,
    actor_id: str,
    session: AsyncSession,
) -> ClientHub:
    existing = await session.execute(select(ClientHub).where(ClientHub.slug == req.slug))
    if existing.scalar_one_or_none():
        raise InvalidArgument("Hub slug already taken", field="slug")

    hub = ClientHub(
        name=req.name.strip(),
        slug=req.slug,
        request_forms_enabled=req.request_forms_enabled,
        created_by=actor_id,
    )
    session.add(hub)
    await session.flush()

    log.info("hub.created", hub_id=str(hub.id), slug=hub.slug, actor=actor_id)
    return hub


async def ensure_hub_organization(
    hub: ClientHub,
    directory: OrganizationDirectory,
    session: AsyncSession,
) -> str:
    """Create the hub's identity-provider organization on first use."""
    if hub.workos_org_id:
        return hub.workos_org_id

    hub.workos_org_id = await directory.create_organization(hub.name)
    hub.updated_at = datetime.now(timezone.utc)
    session.add(hub)
    await session.flush()

    log.info("hub.org_linked", hub_id=str(hub.id), org_id=hub.workos_org_id)
    return hub.workos_org_id


async def update_hub(
    hub: ClientHub,
    req: HubUpdateRequest,
    directory: OrganizationDirectory,
    session: AsyncSession,
) -> ClientHub:
    """Apply a partial update. A rename is mirrored to the linked organization."""
    changes = req.model_dump(exclude_unset=True)
    renamed = "name" in changes and changes["name"] and changes["name"].strip() != hub.name

    for key, value in changes.items():
        if key == "name":
            if not value or not value.strip():
                raise InvalidArgument("Name cannot be empty", field="name")
            value = value.strip()
        if key in ("is_active", "request_forms_enabled") and value is None:
            continue
        setattr(hub, key, value)

    hub.updated_at = datetime.now(timezone.utc)
    session.add(hub)
    await session.flush()

    if renamed and hub.workos_org_id:
        try:
            await directory.update_organization(hub.workos_org_id, hub.name)
        except HubError as exc:
            log.warning("hub.org_rename_failed", hub_id=str(hub.id), error=exc.message)

    log.info("hub.updated", hub_id=str(hub.id), fields=sorted(changes))
    return hub


async def delete_hub(
    hub: ClientHub,
    directory: OrganizationDirectory,
    session: AsyncSession,
) -> None:
    """Delete a hub, then release its organization (best-effort).

    The deletion is committed first: the organization is only released once the
    hub row is gone for good.
    """
    org_id = hub.workos_org_id
    await session.delete(hub)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        log.error("hub.delete_failed", hub_id=str(hub.id), error=str(exc))
        raise StorageError(f"hub.delete_failed: {exc}") from exc
    log.info("hub.deleted", hub_id=str(hub.id), slug=hub.slug)

    if org_id:
        try:
            await directory.delete_organization(org_id)
        except HubError as exc:
            log.warning("hub.org_release_failed", hub_id=str(hub.id), org_id=org_id, error=exc.message)
