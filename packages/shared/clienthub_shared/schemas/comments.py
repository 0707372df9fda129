"""Hub comment schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import CamelModel, PushStatus


class CommentCreate(CamelModel):
    issue_linear_id: Optional[str] = None
    body: Optional[str] = Field(default=None, max_length=20000)


class CommentAuthor(BaseModel):
    id: str
    name: str


class CommentRead(BaseModel):
    id: uuid.UUID
    hub_id: uuid.UUID
    issue_linear_id: str
    author_name: str
    author_email: Optional[str] = None
    body: str
    push_status: PushStatus
    linear_comment_id: Optional[str] = None
    push_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: CommentAuthor
    is_hub_comment: bool = True
