"""Client-authored comments and their push state towards Linear."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class HubComment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "hub_comments"

    hub_id: uuid.UUID = Field(
        foreign_key="client_hubs.id", ondelete="CASCADE", nullable=False, index=True
    )
    issue_linear_id: str = Field(nullable=False, index=True)
    user_id: str = Field(nullable=False)
    author_name: str = Field(nullable=False)
    author_email: Optional[str] = None
    body: str = Field(nullable=False)
    push_status: str = Field(default="pending", nullable=False, index=True)  # pending | pushed | failed
    linear_comment_id: Optional[str] = None  # set once pushed
    push_error: Optional[str] = None  # set when failed
