"""
Authentication Interceptor Middleware

Decodes the bearer token once per request and stores the resulting
SessionContext on ``request.state.session``. Endpoints still declare
``get_current_session`` to enforce authentication; the middleware only saves
them from decoding the token again and tags responses with ``X-User-Id`` and
``X-Session-Flags``.

Usage:
    app.add_middleware(
        AuthInterceptorMiddleware,
        skip_paths=["/health", "/docs", "/openapi.json"],
    )

A skip path matches exactly and as a prefix, except ``/`` which only matches
the root itself.
"""
from typing import Iterable, Optional

from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from solardesk.core.auth import SessionContext, session_from_authorization
from solardesk.core.logging import get_logger

logger = get_logger("middleware.auth-interceptor")

DEFAULT_SKIP_PATHS = ("/", "/health", "/docs", "/redoc", "/openapi.json")


def session_flags(session: SessionContext) -> str:
    flags = [
        name
        for name, enabled in (
            ("admin", session.is_admin),
            ("finance", session.is_finance),
            ("restricted", session.is_restricted),
        )
        if enabled
    ]
    return ",".join(flags) or "staff"


class AuthInterceptorMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, skip_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        paths = tuple(skip_paths) if skip_paths is not None else DEFAULT_SKIP_PATHS
        self.exact_paths = frozenset(paths)
        self.prefix_paths = tuple(path for path in paths if path != "/")

    def should_skip_path(self, path: str) -> bool:
        return path in self.exact_paths or path.startswith(self.prefix_paths)

    def resolve_session(self, request: Request) -> Optional[SessionContext]:
        try:
            return session_from_authorization(request.headers.get("Authorization"))
        except HTTPException as e:
            # Signed token without a usable subject; the endpoint answers 401
            logger.warning(f"Rejected token claims on {request.url.path}: {e.detail}")
            return None

    async def dispatch(self, request: Request, call_next):
        if self.should_skip_path(request.url.path):
            return await call_next(request)

        session = self.resolve_session(request)
        if session is not None:
            request.state.session = session

        response = await call_next(request)

        if session is not None:
            response.headers["X-User-Id"] = session.user_id
            response.headers["X-Session-Flags"] = session_flags(session)

        return response
