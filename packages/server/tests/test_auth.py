"""
Tests for session authentication and request-level guards.

Covers:
- Session JWT creation and decoding
- Caller identity from Bearer header or session cookie
- CSRF middleware (double-submit cookie)
- Security headers middleware
- Platform-admin gate
"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.core.auth import (
    CallerIdentity,
    create_session_token,
    decode_session,
    get_caller_identity,
)
from app.core.config import get_settings
from app.core.errors import Unauthenticated, register_error_handlers
from app.core.middleware import (
    SECURITY_HEADERS,
    CSRFMiddleware,
    SecurityHeadersMiddleware,
    generate_csrf_token,
)


# ---------------------------------------------------------------------------
# Unit Tests: Session JWT
# ---------------------------------------------------------------------------

class TestSessionToken:
    def test_round_trip_claims(self):
        identity = CallerIdentity(
            user_id="user_1",
            email="Jane@Acme.test",
            first_name="Jane",
            last_name="Doe",
            organization_id="org_acme",
        )
        decoded = decode_session(create_session_token(identity))
        assert decoded.user_id == "user_1"
        assert decoded.email == "jane@acme.test"
        assert decoded.organization_id == "org_acme"
        assert decoded.display_name == "Jane Doe"

    def test_expired_token_is_unauthenticated(self):
        token = create_session_token(CallerIdentity(user_id="u"), expires_delta=timedelta(seconds=-1))
        with pytest.raises(Unauthenticated):
            decode_session(token)

    def test_wrong_signature_is_unauthenticated(self):
        token = jwt.encode({"sub": "u"}, "another-secret-key-that-is-long-enough", algorithm="HS256")
        with pytest.raises(Unauthenticated):
            decode_session(token)

    def test_missing_subject_is_unauthenticated(self):
        settings = get_settings()
        token = jwt.encode({"email": "x@y.z"}, settings.secret_key, algorithm=settings.jwt_algorithm)
        with pytest.raises(Unauthenticated):
            decode_session(token)

    def test_display_name_falls_back_to_email(self):
        assert CallerIdentity(user_id="u", email="a@b.c").display_name == "a@b.c"


# ---------------------------------------------------------------------------
# Identity dependency
# ---------------------------------------------------------------------------

def _identity_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/whoami")
    async def whoami(identity: CallerIdentity = Depends(get_caller_identity)):
        return {"user_id": identity.user_id, "org": identity.organization_id}

    return app


class TestCallerIdentity:
    def test_bearer_header(self):
        client = TestClient(_identity_app())
        token = create_session_token(CallerIdentity(user_id="u1", organization_id="org_x"))
        resp = client.get("/whoami", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"user_id": "u1", "org": "org_x"}

    def test_session_cookie(self):
        client = TestClient(_identity_app())
        token = create_session_token(CallerIdentity(user_id="u2"))
        client.cookies.set(get_settings().session_cookie_name, token)
        resp = client.get("/whoami")
        assert resp.status_code == 200
        assert resp.json()["user_id"] == "u2"

    def test_no_credentials_is_401_envelope(self):
        client = TestClient(_identity_app())
        resp = client.get("/whoami")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"
        assert resp.json()["error"]["message"] == "Authentication required"

    def test_garbage_bearer_is_401(self):
        client = TestClient(_identity_app())
        resp = client.get("/whoami", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

def _middleware_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CSRFMiddleware, session_cookie="hub_session", csrf_cookie="hub_csrf")

    @app.get("/read")
    async def read():
        return {"ok": True}

    @app.post("/write")
    async def write():
        return {"ok": True}

    return app


class TestCSRFMiddleware:
    def test_safe_method_passes(self):
        client = TestClient(_middleware_app())
        client.cookies.set("hub_session", "s")
        assert client.get("/read").status_code == 200

    def test_post_without_session_cookie_passes(self):
        client = TestClient(_middleware_app())
        assert client.post("/write").status_code == 200

    def test_post_with_bearer_passes(self):
        client = TestClient(_middleware_app())
        client.cookies.set("hub_session", "s")
        assert client.post("/write", headers={"Authorization": "Bearer x"}).status_code == 200

    def test_post_with_cookie_and_no_token_is_rejected(self):
        client = TestClient(_middleware_app())
        client.cookies.set("hub_session", "s")
        resp = client.post("/write")
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "CSRF_VALIDATION_FAILED"

    def test_post_with_mismatched_token_is_rejected(self):
        client = TestClient(_middleware_app())
        client.cookies.set("hub_session", "s")
        client.cookies.set("hub_csrf", generate_csrf_token())
        resp = client.post("/write", headers={"X-CSRF-Token": "other"})
        assert resp.status_code == 403

    def test_post_with_matching_token_passes(self):
        client = TestClient(_middleware_app())
        token = generate_csrf_token()
        client.cookies.set("hub_session", "s")
        client.cookies.set("hub_csrf", token)
        assert client.post("/write", headers={"X-CSRF-Token": token}).status_code == 200


class TestSecurityHeaders:
    def test_all_headers_set(self):
        resp = TestClient(_middleware_app()).get("/read")
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers[header] == value


# ---------------------------------------------------------------------------
# Platform-admin gate
# ---------------------------------------------------------------------------

class TestPlatformAdminGate:
    @pytest.mark.asyncio
    async def test_non_admin_gets_403(self, client, headers_for):
        resp = await client.get("/api/v1/admin/hubs", headers=headers_for(CallerIdentity(user_id="nobody")))
        assert resp.status_code == 403
        assert resp.json()["error"] == {"code": "ACCESS_DENIED", "message": "Access denied", "status": 403}

    @pytest.mark.asyncio
    async def test_admin_passes(self, client, headers_for, add_admin):
        await add_admin("root")
        resp = await client.get("/api/v1/admin/hubs", headers=headers_for(CallerIdentity(user_id="root")))
        assert resp.status_code == 200
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_anonymous_gets_401(self, client):
        resp = await client.get("/api/v1/admin/hubs")
        assert resp.status_code == 401
