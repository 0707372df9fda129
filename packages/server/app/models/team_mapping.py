"""Hub ↔ Linear team mapping with per-team visibility allowlists."""

from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import StringList, TimestampMixin, UUIDMixin


class HubTeamMapping(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "hub_team_mappings"
    __table_args__ = (sa.UniqueConstraint("hub_id", "linear_team_id", name="uq_hub_team"),)

    hub_id: uuid.UUID = Field(
        foreign_key="client_hubs.id", ondelete="CASCADE", nullable=False, index=True
    )
    linear_team_id: str = Field(nullable=False, index=True)
    linear_team_name: Optional[str] = None  # cached for display
    # Empty list = no restriction for that dimension
    visible_project_ids: List[str] = Field(default_factory=list, sa_type=StringList, nullable=False)
    visible_initiative_ids: List[str] = Field(default_factory=list, sa_type=StringList, nullable=False)
    visible_label_ids: List[str] = Field(default_factory=list, sa_type=StringList, nullable=False)
    hidden_label_ids: List[str] = Field(default_factory=list, sa_type=StringList, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
