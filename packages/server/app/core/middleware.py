"""
Security middleware: security headers and CSRF protection for cookie sessions.
"""

from __future__ import annotations

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.config import get_settings
from app.core.errors import error_envelope

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
CSRF_HEADER = "X-CSRF-Token"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none';",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
}


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection.

    Only unsafe methods carrying the session cookie are checked; Bearer
    requests are not cookie-authenticated and pass through.
    """

    def __init__(self, app, session_cookie: str | None = None, csrf_cookie: str | None = None):
        super().__init__(app)
        settings = get_settings()
        self.session_cookie = session_cookie or settings.session_cookie_name
        self.csrf_cookie = csrf_cookie or settings.csrf_cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method in SAFE_METHODS:
            return await call_next(request)

        if request.headers.get("Authorization"):
            return await call_next(request)

        if self.session_cookie not in request.cookies:
            return await call_next(request)

        cookie_token = request.cookies.get(self.csrf_cookie)
        header_token = request.headers.get(CSRF_HEADER)

        if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
            return JSONResponse(
                status_code=403,
                content=error_envelope("CSRF_VALIDATION_FAILED", "Invalid or missing CSRF token.", 403),
            )

        return await call_next(request)
