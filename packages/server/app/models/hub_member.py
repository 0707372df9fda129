"""Hub membership / invitation model."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class HubMember(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "hub_members"
    __table_args__ = (
        sa.UniqueConstraint("hub_id", "user_id", name="uq_hub_member"),
        sa.UniqueConstraint("hub_id", "email", name="uq_hub_member_email"),
    )

    hub_id: uuid.UUID = Field(
        foreign_key="client_hubs.id", ondelete="CASCADE", nullable=False, index=True
    )
    user_id: Optional[str] = Field(default=None, index=True)  # null until the invite is claimed
    email: Optional[str] = Field(default=None, index=True)  # stored lower-cased
    role: str = Field(nullable=False, default="default")  # default | view_only
    invited_by: Optional[str] = None
    workos_invitation_id: Optional[str] = None
