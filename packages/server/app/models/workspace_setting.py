"""Workspace-level key/value settings (holds the encrypted Linear token)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class WorkspaceSetting(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "workspace_settings"

    key: str = Field(unique=True, nullable=False, index=True)
    value: str = Field(nullable=False)
    updated_by: Optional[str] = None
