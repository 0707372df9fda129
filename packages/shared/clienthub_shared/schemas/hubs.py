"""
Hub-related Pydantic schemas shared between the server and portal clients.

Covers: hub CRUD requests/responses, membership (me) payload, member
invitations and platform-admin grants.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import CamelModel, HubRole


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class HubCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Hub display name")
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$",
        description="URL-safe hub identifier (immutable)",
    )
    request_forms_enabled: bool = False


class HubUpdateRequest(BaseModel):
    """Partial hub update. The slug is deliberately absent: it never changes."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    request_forms_enabled: Optional[bool] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    accent_color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    footer_text: Optional[str] = Field(None, max_length=500)


class MemberInviteRequest(BaseModel):
    email: EmailStr
    role: HubRole = HubRole.DEFAULT


class MemberRoleUpdate(BaseModel):
    role: HubRole


class PlatformAdminGrant(BaseModel):
    user_id: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class HubRead(BaseModel):
    id: uuid.UUID
    slug: str
    name: str
    workos_org_id: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    accent_color: Optional[str] = None
    footer_text: Optional[str] = None
    request_forms_enabled: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemberRead(BaseModel):
    id: uuid.UUID
    hub_id: uuid.UUID
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: HubRole
    status: str  # active | invited
    created_at: datetime


class MembershipRead(CamelModel):
    """The caller's view of their own membership in a hub."""

    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: HubRole
    hub_id: uuid.UUID
    hub_name: str
    is_view_only: bool
    request_forms_enabled: bool
