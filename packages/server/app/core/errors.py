"""
Error taxonomy and the FastAPI handlers that render it.

Every domain failure derives from ``HubError`` and carries a stable ``code``
and HTTP ``status``. Responses use the same envelope as the middleware:

    {"error": {"code": "...", "message": "...", "status": 404}}

Infrastructure faults (``StorageError``, ``UpstreamError``,
``DataIntegrityError``) are logged with their detail and rendered as a
generic internal error.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

log = structlog.get_logger()


class HubError(Exception):
    code = "INTERNAL_ERROR"
    status = 500
    public_message: Optional[str] = None
    # False: the caller only ever sees public_message, the detail is logged
    expose_detail = True

    def __init__(self, message: str = "", *, field: Optional[str] = None):
        super().__init__(message or self.public_message or self.code)
        self.message = message or self.public_message or self.code
        self.field = field

    @property
    def client_message(self) -> str:
        return self.message if self.expose_detail else self.public_message


class NotFound(HubError):
    code = "NOT_FOUND"
    status = 404
    public_message = "Resource does not exist"


class HubNotFound(NotFound):
    code = "HUB_NOT_FOUND"
    public_message = "Hub does not exist"
    expose_detail = False


class Denied(HubError):
    code = "ACCESS_DENIED"
    status = 403
    public_message = "Access denied"
    expose_detail = False  # never reveal which check failed


class Unauthenticated(Denied):
    code = "UNAUTHENTICATED"
    status = 401
    public_message = "Authentication required"


class InvalidArgument(HubError):
    code = "INVALID_ARGUMENT"
    status = 400
    public_message = "Invalid request"


class InvalidCredential(HubError):
    code = "INVALID_CREDENTIAL"
    status = 400
    public_message = "Linear API token was rejected"


class NotConfigured(HubError):
    code = "NOT_CONFIGURED"
    status = 409
    public_message = "Workspace Linear token is not configured"


class Unavailable(HubError):
    code = "UNAVAILABLE"
    status = 503
    public_message = "Synced data is not available yet"
    expose_detail = False


class InternalError(HubError):
    code = "INTERNAL_ERROR"
    status = 500
    public_message = "Internal server error"
    expose_detail = False


class StorageError(InternalError):
    code = "STORAGE_ERROR"


class UpstreamError(InternalError):
    code = "UPSTREAM_ERROR"


class DataIntegrityError(InternalError):
    code = "DATA_INTEGRITY_ERROR"


def error_envelope(
    code: str, message: str, status: int, field: Optional[str] = None
) -> dict:
    body = {"code": code, "message": message, "status": status}
    if field:
        body["field"] = field
    return {"error": body}


async def hub_error_handler(request: Request, exc: HubError) -> JSONResponse:
    if isinstance(exc, InternalError):
        log.error(
            "request.internal_error",
            path=request.url.path,
            code=exc.code,
            detail=exc.message,
        )
    elif isinstance(exc, Denied):
        log.info("request.denied", path=request.url.path, code=exc.code, reason=exc.message)
    public_code = InternalError.code if isinstance(exc, InternalError) else exc.code
    return JSONResponse(
        status_code=exc.status,
        content=error_envelope(public_code, exc.client_message, exc.status, exc.field),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc) or None
    message = first.get("msg", InvalidArgument.public_message)
    return JSONResponse(
        status_code=InvalidArgument.status,
        content=error_envelope(InvalidArgument.code, message, InvalidArgument.status, field),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HubError, hub_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
