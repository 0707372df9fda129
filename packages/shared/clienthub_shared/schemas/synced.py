"""
Read models for data served from the synced Linear mirror.

The same shapes are produced whether a row came from the local mirror or
from a live Linear query, so callers never see which path answered.
"""

from __future__ import annotations

from typing import FrozenSet, List, Optional

from pydantic import BaseModel, Field


class TeamRef(BaseModel):
    id: str
    name: Optional[str] = None


class LabelRead(BaseModel):
    id: str
    name: str = ""
    color: str = ""


class StateRead(BaseModel):
    id: str = ""
    name: str
    color: str = ""
    type: str = ""


class MemberRef(BaseModel):
    id: str = ""
    name: str


class ProjectSummary(BaseModel):
    id: str
    name: str
    status: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    team_ids: FrozenSet[str] = Field(default_factory=frozenset)
    initiative_ids: FrozenSet[str] = Field(default_factory=frozenset)


class ProjectListItem(BaseModel):
    id: str
    name: str


class IssueRead(BaseModel):
    id: str
    identifier: str = ""
    title: str = ""
    priority: int = 0
    url: str = ""
    team_id: Optional[str] = None
    project_id: Optional[str] = None
    initiative_id: Optional[str] = None
    state: Optional[StateRead] = None
    assignee: Optional[MemberRef] = None
    labels: List[LabelRead] = Field(default_factory=list)
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Metadata(BaseModel):
    states: List[StateRead] = Field(default_factory=list)
    labels: List[LabelRead] = Field(default_factory=list)
    members: List[MemberRef] = Field(default_factory=list)
