import time

import jwt
import pytest
from fastapi import HTTPException

from solardesk.core.auth import (
    SessionContext,
    build_session_context,
    extract_bearer_token,
    session_from_authorization,
)
from solardesk.core.config import settings
from solardesk.middleware.auth_interceptor import AuthInterceptorMiddleware, session_flags
from solardesk.services.auth_service import logout_session


def make_token(**claims):
    payload = {"sub": "user-42", "email": "Ops@Example.com", "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("JWT abc") == "abc"
    assert extract_bearer_token("abc") == "abc"
    assert extract_bearer_token(None) is None


def test_roles_from_app_metadata():
    session = session_from_authorization(f"Bearer {make_token(app_metadata={'roles': ['Admin']})}")
    assert session.user_id == "user-42"
    assert session.email == "ops@example.com"
    assert session.is_admin
    assert not session.is_finance


def test_invalid_and_expired_tokens():
    assert session_from_authorization("Bearer not-a-token") is None
    assert session_from_authorization(f"Bearer {make_token(exp=int(time.time()) - 10)}") is None


def test_email_lists(monkeypatch):
    monkeypatch.setattr(settings, "FINANCE_EMAILS", ["ops@example.com"])
    monkeypatch.setattr(settings, "RESTRICTED_EMAILS", ["ops@example.com"])
    session = build_session_context({"sub": "user-42", "email": "ops@example.com"})
    assert session.is_finance
    assert session.is_restricted
    assert not session.is_admin


def test_claims_without_subject():
    with pytest.raises(HTTPException) as exc_info:
        build_session_context({"email": "ops@example.com"})
    assert exc_info.value.status_code == 401


def test_session_endpoint(anonymous_client):
    response = anonymous_client.get(
        "/api/v1/auth/session",
        headers={"Authorization": f"Bearer {make_token(app_metadata={'roles': ['finance']})}"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["is_finance"] is True
    assert response.headers["X-User-Id"] == "user-42"
    assert response.headers["X-Session-Flags"] == "finance"


def test_missing_token_is_unauthorized(anonymous_client):
    response = anonymous_client.get("/api/v1/projects/")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_logout_requires_token():
    with pytest.raises(HTTPException) as exc_info:
        logout_session("")
    assert exc_info.value.status_code == 401


def test_skip_paths_match_root_exactly():
    middleware = AuthInterceptorMiddleware(app=None, skip_paths=["/", "/health", "/api/v1/auth/login"])
    assert middleware.should_skip_path("/")
    assert middleware.should_skip_path("/health")
    assert middleware.should_skip_path("/api/v1/auth/login")
    assert not middleware.should_skip_path("/api/v1/projects/")


def test_session_flags():
    assert session_flags(SessionContext(user_id="u1")) == "staff"
    assert session_flags(SessionContext(user_id="u1", is_admin=True, is_restricted=True)) == "admin,restricted"
