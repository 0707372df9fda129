"""Local mirror of Linear data, written by the external sync process."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import JSONDocument, TimestampMixin


class SyncedProject(TimestampMixin, SQLModel, table=True):
    __tablename__ = "synced_projects"

    linear_id: str = Field(primary_key=True)
    user_id: str = Field(primary_key=True)  # always the workspace sentinel
    name: str = Field(nullable=False)
    status_name: Optional[str] = None
    data: dict = Field(default_factory=dict, sa_type=JSONDocument, nullable=False)


class SyncedIssue(TimestampMixin, SQLModel, table=True):
    __tablename__ = "synced_issues"

    linear_id: str = Field(primary_key=True)
    user_id: str = Field(primary_key=True)
    team_id: Optional[str] = Field(default=None, index=True)
    project_id: Optional[str] = Field(default=None, index=True)
    state_name: Optional[str] = None
    data: dict = Field(default_factory=dict, sa_type=JSONDocument, nullable=False)


class SyncedInitiative(TimestampMixin, SQLModel, table=True):
    __tablename__ = "synced_initiatives"

    linear_id: str = Field(primary_key=True)
    user_id: str = Field(primary_key=True)
    name: str = Field(nullable=False)
    status: Optional[str] = None
    data: dict = Field(default_factory=dict, sa_type=JSONDocument, nullable=False)
