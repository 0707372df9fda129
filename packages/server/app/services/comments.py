"""
Hub comments: stored locally first, then pushed to Linear once.

A push has two ordinary outcomes, ``Pushed`` and ``PushFailed``; neither is an
exception and neither fails the caller's request. The row is committed in
``pending`` before the push is attempted, so a comment survives any upstream
failure. Failed comments are re-pushed only through ``retry_comment``.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Union

import structlog
from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import HubError, InvalidArgument, NotFound, StorageError
from app.core.linear import LinearClient, get_linear_client
from app.models.hub import ClientHub
from app.models.hub_comment import HubComment
from app.services import synced
from app.services.workspace import CredentialProvider, get_workspace_credentials

from clienthub_shared.schemas.comments import CommentAuthor, CommentRead
from clienthub_shared.schemas.common import PushStatus

if TYPE_CHECKING:
    from app.core.auth import CallerIdentity

log = structlog.get_logger()


@dataclass(frozen=True)
class Pushed:
    comment_id: str


@dataclass(frozen=True)
class PushFailed:
    reason: str


PushOutcome = Union[Pushed, PushFailed]


def format_linear_body(author_name: str, body: str) -> str:
    """Linear only knows the token holder, so authorship goes into the text."""
    return f"**{author_name}:** {body}"


class CommentPusher:
    """Single bounded attempt to create a comment on a Linear issue."""

    def __init__(self, credentials: CredentialProvider, linear: LinearClient, timeout: float = 5.0):
        self._credentials = credentials
        self._linear = linear
        self._timeout = timeout

    async def _create(self, issue_id: str, body: str) -> str:
        token = await self._credentials.get_token()
        return await self._linear.create_comment(token, issue_id, body, timeout=self._timeout)

    async def push(self, issue_id: str, body: str) -> PushOutcome:
        """Never raises: every failure, including a blown deadline, is a ``PushFailed``."""
        try:
            # httpx timeouts are per phase; this bounds the whole attempt
            comment_id = await asyncio.wait_for(self._create(issue_id, body), self._timeout)
        except asyncio.TimeoutError:
            return PushFailed(f"Linear push timed out after {self._timeout:g}s")
        except HubError as exc:
            return PushFailed(exc.message)
        except Exception as exc:
            log.exception("comment.push_crashed", issue_id=issue_id)
            return PushFailed(str(exc) or type(exc).__name__)
        return Pushed(comment_id)


def get_comment_pusher(
    credentials: CredentialProvider = Depends(get_workspace_credentials),
    linear: LinearClient = Depends(get_linear_client),
) -> CommentPusher:
    return CommentPusher(credentials, linear, timeout=get_settings().linear_push_timeout_seconds)


def comment_read(comment: HubComment) -> CommentRead:
    return CommentRead(
        id=comment.id,
        hub_id=comment.hub_id,
        issue_linear_id=comment.issue_linear_id,
        author_name=comment.author_name,
        author_email=comment.author_email,
        body=comment.body,
        push_status=PushStatus(comment.push_status),
        linear_comment_id=comment.linear_comment_id,
        push_error=comment.push_error,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user=CommentAuthor(id=comment.user_id, name=comment.author_name),
    )


async def _commit(session: AsyncSession, event: str, comment: HubComment) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        log.error(event, comment_id=str(comment.id), error=str(exc))
        raise StorageError(f"{event}: {exc}") from exc


async def _apply_outcome(comment: HubComment, outcome: PushOutcome, session: AsyncSession) -> None:
    comment.updated_at = datetime.now(timezone.utc)
    if isinstance(outcome, Pushed):
        comment.push_status = PushStatus.PUSHED.value
        comment.linear_comment_id = outcome.comment_id
        comment.push_error = None
        log.info("comment.pushed", comment_id=str(comment.id), linear_comment_id=outcome.comment_id)
    else:
        comment.push_status = PushStatus.FAILED.value
        comment.push_error = outcome.reason or "Unknown push error"
        log.warning("comment.push_failed", comment_id=str(comment.id), error=comment.push_error)
    session.add(comment)
    await _commit(session, "comment.status_update_failed", comment)


async def submit_comment(
    hub: ClientHub,
    issue_id: Optional[str],
    author: CallerIdentity,
    body: Optional[str],
    pusher: CommentPusher,
    session: AsyncSession,
) -> CommentRead:
    """Store a comment, push it once, and report where it ended up."""
    text = (body or "").strip()
    issue_id = (issue_id or "").strip()
    if not issue_id:
        raise InvalidArgument("issueLinearId is required", field="issueLinearId")
    if not text:
        raise InvalidArgument("body is required", field="body")

    author_name = author.display_name
    comment = HubComment(
        hub_id=hub.id,
        issue_linear_id=issue_id,
        user_id=author.user_id,
        author_name=author_name,
        author_email=author.email,
        body=text,
        push_status=PushStatus.PENDING.value,
    )
    session.add(comment)
    await _commit(session, "comment.insert_failed", comment)
    log.info("comment.created", comment_id=str(comment.id), hub_id=str(hub.id), issue_id=issue_id)

    outcome = await pusher.push(issue_id, format_linear_body(author_name, text))
    await _apply_outcome(comment, outcome, session)
    return comment_read(comment)


async def retry_comment(
    comment_id: uuid.UUID, pusher: CommentPusher, session: AsyncSession
) -> CommentRead:
    """Re-attempt the push of a comment that did not reach Linear."""
    comment = await session.get(HubComment, comment_id)
    if not comment:
        raise NotFound("Comment not found")
    if comment.push_status == PushStatus.PUSHED.value:
        raise InvalidArgument("Comment was already pushed")

    log.info("comment.retry", comment_id=str(comment.id), previous_error=comment.push_error)
    outcome = await pusher.push(
        comment.issue_linear_id, format_linear_body(comment.author_name, comment.body)
    )
    await _apply_outcome(comment, outcome, session)
    return comment_read(comment)


async def list_issue_comments(
    hub: ClientHub, issue_id: str, session: AsyncSession
) -> list[CommentRead]:
    """Hub comments on an issue the hub can see, oldest first."""
    if await synced.hub_issue(hub, issue_id, session) is None:
        raise NotFound("Issue not found")
    result = await session.execute(
        select(HubComment)
        .where(HubComment.hub_id == hub.id, HubComment.issue_linear_id == issue_id)
        .order_by(HubComment.created_at)
    )
    return [comment_read(c) for c in result.scalars().all()]


async def list_comments_by_status(
    status: PushStatus, session: AsyncSession, hub_id: Optional[uuid.UUID] = None
) -> list[CommentRead]:
    query = select(HubComment).where(HubComment.push_status == status.value)
    if hub_id:
        query = query.where(HubComment.hub_id == hub_id)
    result = await session.execute(query.order_by(HubComment.created_at))
    return [comment_read(c) for c in result.scalars().all()]
