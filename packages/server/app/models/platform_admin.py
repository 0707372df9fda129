"""Platform administrators: bypass hub membership entirely."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class PlatformAdmin(SQLModel, table=True):
    __tablename__ = "platform_admins"

    user_id: str = Field(primary_key=True)
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
