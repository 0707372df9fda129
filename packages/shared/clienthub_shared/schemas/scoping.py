"""Team mapping (visibility scoping) schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TeamMappingCreate(BaseModel):
    linear_team_id: str = Field(..., min_length=1)
    linear_team_name: Optional[str] = None
    visible_project_ids: List[str] = Field(default_factory=list)
    visible_initiative_ids: List[str] = Field(default_factory=list)
    visible_label_ids: List[str] = Field(default_factory=list)
    hidden_label_ids: List[str] = Field(default_factory=list)


class TeamMappingUpdate(BaseModel):
    visible_project_ids: Optional[List[str]] = None
    visible_initiative_ids: Optional[List[str]] = None
    visible_label_ids: Optional[List[str]] = None
    hidden_label_ids: Optional[List[str]] = None
    is_active: Optional[bool] = None


class TeamMappingRead(BaseModel):
    id: uuid.UUID
    hub_id: uuid.UUID
    linear_team_id: str
    linear_team_name: Optional[str] = None
    visible_project_ids: List[str]
    visible_initiative_ids: List[str]
    visible_label_ids: List[str]
    hidden_label_ids: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
