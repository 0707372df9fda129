"""Workspace credential schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TokenSetRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ViewerRead(BaseModel):
    name: str
    email: str


class TokenSetResponse(BaseModel):
    success: bool = True
    viewer: ViewerRead


class TokenStatus(BaseModel):
    configured: bool
