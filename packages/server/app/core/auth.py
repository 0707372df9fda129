"""
Authentication and hub authorization dependencies.

Supports:
- Session JWT issued by the identity provider (cookie or Bearer header)
- Hub-scoped access checks (reader / writer) decided once per request
- Platform-admin gate for the administrative API
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import Denied, Unauthenticated
from app.services import hubs as hub_service
from app.services import membership
from app.services.membership import HubAccess

from clienthub_shared.schemas.common import Capability

log = structlog.get_logger()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, as asserted by the identity provider."""

    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    organization_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.email or "Hub user"


# ---------------------------------------------------------------------------
# Session JWT
# ---------------------------------------------------------------------------

def create_session_token(
    identity: CallerIdentity,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a session token carrying the identity claims (local dev and tests)."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": identity.user_id,
        "email": identity.email,
        "first_name": identity.first_name,
        "last_name": identity.last_name,
        "org_id": identity.organization_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=8)),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_session(token: str) -> CallerIdentity:
    """Verify a session token. Raises ``Unauthenticated`` when it is not usable."""
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise Unauthenticated(f"invalid session: {exc}") from exc

    user_id = claims.get("sub")
    if not user_id:
        raise Unauthenticated("session has no subject")

    email = claims.get("email")
    return CallerIdentity(
        user_id=str(user_id),
        email=email.strip().lower() if email else None,
        first_name=claims.get("first_name"),
        last_name=claims.get("last_name"),
        organization_id=claims.get("org_id"),
    )


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

async def get_caller_identity(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
) -> CallerIdentity:
    """Bearer header first, then the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return decode_session(authorization[7:].strip())

    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return decode_session(token)

    raise Unauthenticated("no session")


async def _hub_access(
    hub_slug: str,
    identity: CallerIdentity,
    capability: Capability,
    session: AsyncSession,
) -> HubAccess:
    hub = await hub_service.resolve_by_slug(hub_slug, session)
    return await membership.authorize(hub, identity, capability, session)


async def require_hub_reader(
    request: Request,
    hubSlug: str,
    identity: CallerIdentity = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
) -> HubAccess:
    """Any hub member (including view-only) can access this endpoint."""
    access = await _hub_access(hubSlug, identity, Capability.READ, session)
    request.state.access = access
    return access


async def require_hub_writer(
    request: Request,
    hubSlug: str,
    identity: CallerIdentity = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
) -> HubAccess:
    """Requires a role that may mutate hub content."""
    access = await _hub_access(hubSlug, identity, Capability.WRITE, session)
    request.state.access = access
    return access


async def require_platform_admin(
    identity: CallerIdentity = Depends(get_caller_identity),
    session: AsyncSession = Depends(get_session),
) -> CallerIdentity:
    if not await membership.is_platform_admin(identity.user_id, session):
        log.info("admin.denied", user_id=identity.user_id)
        raise Denied("not a platform admin")
    return identity
