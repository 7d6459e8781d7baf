"""
Authentication and Authorization Dependencies

Bearer tokens are issued by the hosted auth service; this module only verifies
them and turns their claims into a ``SessionContext``. The session context is
passed explicitly into services, so role checks never depend on global state.

Role flags:
- admin: ``app_metadata.roles`` contains "admin" or the e-mail is in ADMIN_EMAILS
- finance: ``app_metadata.roles`` contains "finance" or the e-mail is in FINANCE_EMAILS
- restricted: the e-mail is in RESTRICTED_EMAILS (revenue figures hidden)
"""
from typing import Optional, List, Dict, Any

import jwt
from fastapi import HTTPException, Header, Request, status, Depends
from pydantic import BaseModel, ConfigDict

from solardesk.core.config import settings
from solardesk.core.logging import get_logger

logger = get_logger("core.auth")


class SessionContext(BaseModel):
    """Authenticated user identity and capability flags"""
    user_id: str
    email: Optional[str] = None
    roles: List[str] = []
    is_admin: bool = False
    is_finance: bool = False
    is_restricted: bool = False

    model_config = ConfigDict(from_attributes=True, frozen=True)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an Authorization header value.

    Supports ``Bearer <token>``, ``JWT <token>`` and a bare token.
    """
    if not authorization:
        return None

    authorization = authorization.strip()
    for prefix in ("Bearer ", "bearer ", "JWT ", "jwt "):
        if authorization.startswith(prefix):
            return authorization[len(prefix):].strip() or None
    return authorization


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify signature and expiry; returns the claims or None."""
    try:
        return jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Access token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid access token: {str(e)}")
        return None


def _extract_roles(claims: Dict[str, Any]) -> List[str]:
    app_metadata = claims.get("app_metadata") or {}
    roles = app_metadata.get("roles") if isinstance(app_metadata, dict) else None
    if roles is None:
        roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return [str(role).lower() for role in roles]


def build_session_context(claims: Dict[str, Any]) -> SessionContext:
    """Map verified token claims to a SessionContext"""
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not identify a user",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email = (claims.get("email") or "").strip().lower() or None
    roles = _extract_roles(claims)

    return SessionContext(
        user_id=str(user_id),
        email=email,
        roles=roles,
        is_admin="admin" in roles or (email is not None and email in settings.ADMIN_EMAILS),
        is_finance="finance" in roles or (email is not None and email in settings.FINANCE_EMAILS),
        is_restricted=email is not None and email in settings.RESTRICTED_EMAILS,
    )


def session_from_authorization(authorization: Optional[str]) -> Optional[SessionContext]:
    token = extract_bearer_token(authorization)
    if not token:
        return None
    claims = decode_access_token(token)
    if not claims:
        return None
    return build_session_context(claims)


def get_current_session(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> SessionContext:
    """
    FastAPI dependency returning the caller's SessionContext.

    Reuses the context stored on ``request.state`` by AuthInterceptorMiddleware
    when present. Missing or invalid credentials yield 401 so the front end
    sends the user back to login.
    """
    session = getattr(request.state, "session", None)
    if session is None:
        session = session_from_authorization(authorization)

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def require_admin(session: SessionContext = Depends(get_current_session)) -> SessionContext:
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return session
