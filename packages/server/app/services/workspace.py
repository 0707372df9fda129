"""
Workspace credential store: the single Linear API token for the deployment.

The token is validated against Linear before it is stored, kept encrypted in
``workspace_settings`` and decrypted on every read. ``WorkspaceCredentials``
is handed to whatever needs upstream access; nothing holds it globally.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.crypto import TokenCipher, TokenDecryptionError, get_token_cipher
from app.core.database import get_session
from app.core.errors import InvalidArgument, InvalidCredential, NotConfigured, UpstreamError
from app.core.linear import LinearClient, LinearGraphQLError, get_linear_client
from app.models.workspace_setting import WorkspaceSetting

log = structlog.get_logger()

LINEAR_TOKEN_KEY = "linear_api_token"


class CredentialProvider(Protocol):
    async def get_token(self) -> str: ...

    async def has_token(self) -> bool: ...


@dataclass(frozen=True)
class ViewerInfo:
    viewer_name: str
    viewer_email: str


class WorkspaceCredentials:
    def __init__(self, session: AsyncSession, cipher: TokenCipher, linear: LinearClient):
        self._session = session
        self._cipher = cipher
        self._linear = linear

    async def _record(self) -> Optional[WorkspaceSetting]:
        result = await self._session.execute(
            select(WorkspaceSetting).where(WorkspaceSetting.key == LINEAR_TOKEN_KEY)
        )
        return result.scalar_one_or_none()

    async def set_token(self, raw_token: str, actor_id: str) -> ViewerInfo:
        """Validate ``raw_token`` with a viewer query, then replace the stored token."""
        token = (raw_token or "").strip()
        if not token:
            raise InvalidArgument("Token is required", field="token")

        try:
            viewer = await self._linear.viewer(token)
        except LinearGraphQLError as exc:
            log.info("workspace.token_rejected", actor=actor_id, error=exc.message)
            raise InvalidCredential(f"Linear rejected the token: {exc.message}") from exc
        except UpstreamError as exc:
            log.info("workspace.token_rejected", actor=actor_id, error=exc.message)
            raise InvalidCredential(exc.message) from exc

        record = await self._record()
        encrypted = self._cipher.encrypt(token)
        if record is None:
            record = WorkspaceSetting(key=LINEAR_TOKEN_KEY, value=encrypted, updated_by=actor_id)
        else:
            record.value = encrypted
            record.updated_by = actor_id
            record.updated_at = datetime.now(timezone.utc)
        self._session.add(record)
        await self._session.flush()

        log.info("workspace.token_set", actor=actor_id, viewer=viewer.name)
        return ViewerInfo(viewer_name=viewer.name, viewer_email=viewer.email)

    async def get_token(self) -> str:
        record = await self._record()
        if record is None:
            raise NotConfigured("no workspace token stored")
        try:
            return self._cipher.decrypt(record.value)
        except TokenDecryptionError as exc:
            log.error("workspace.token_undecryptable")
            raise NotConfigured("stored workspace token cannot be decrypted") from exc

    async def has_token(self) -> bool:
        return await self._record() is not None


async def get_workspace_credentials(
    session: AsyncSession = Depends(get_session),
    cipher: TokenCipher = Depends(get_token_cipher),
    linear: LinearClient = Depends(get_linear_client),
) -> WorkspaceCredentials:
    """FastAPI dependency; override it in tests to substitute a fake."""
    return WorkspaceCredentials(session, cipher, linear)
