"""
FastAPI authentication pieces: the bearer-token check, role gate, and the
two response middlewares (request ids and security headers).
"""

import logging
import secrets
from collections.abc import Callable
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Request, status
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.middleware.base import BaseHTTPMiddleware

from tradedesk.infrastructure.database.connection import SessionFactory
from tradedesk.infrastructure.database.models import UserSession
from tradedesk.infrastructure.monitoring import set_correlation_id, set_user_context

from .jwt_service import (
    InvalidTokenException,
    JWTService,
    TokenExpiredException,
    TokenRevokedException,
)

logger = logging.getLogger(__name__)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail=detail, headers=BEARER_CHALLENGE
    )


class JWTBearer(HTTPBearer):
    """
    Accepts a request only with a valid access token whose login session
    is still open; logging out or deleting the account closes the session
    even while the token itself has time left.
    """

    def __init__(self, jwt_service: JWTService, session_factory: SessionFactory) -> None:
        super().__init__(auto_error=True)
        self.jwt_service = jwt_service
        self.session_factory = session_factory

    async def __call__(self, request: Request) -> dict[str, Any]:  # type: ignore[override]
        try:
            credentials: HTTPAuthorizationCredentials | None = await super().__call__(request)
        except HTTPException:
            # Starlette answers 403 for a missing header
            raise _unauthorized("Authorization required")
        if credentials is None:
            raise _unauthorized("Authorization required")

        try:
            payload = self.jwt_service.verify_access_token(credentials.credentials)
        except TokenExpiredException:
            raise _unauthorized("Token has expired")
        except TokenRevokedException:
            raise _unauthorized("Token has been revoked")
        except InvalidTokenException as e:
            raise _unauthorized(str(e))

        session_id = payload.get("sid")
        if session_id:
            self._touch_session(session_id)

        request.state.user_id = payload["sub"]
        request.state.roles = payload.get("roles", [])
        request.state.session_id = session_id
        set_user_context(payload["sub"], session_id)
        return payload

    def _touch_session(self, session_id: str) -> None:
        """Refresh the session's last-activity time, refusing closed sessions."""
        try:
            key = UUID(session_id)
        except ValueError:
            raise _unauthorized("Session expired or invalid")

        with self.session_factory() as db:
            session = db.get(UserSession, key)
            if session is None or not session.is_valid():
                logger.info(f"Rejected token for closed session {session_id}")
                raise _unauthorized("Session expired or invalid")
            session.update_activity()
            db.commit()


class RequireRole:
    """Dependency that passes when the caller holds any of ``roles``."""

    def __init__(self, *roles: str) -> None:
        self.roles = frozenset(roles)

    async def __call__(self, request: Request) -> bool:
        held = getattr(request.state, "roles", None)
        if held is None:
            raise _unauthorized("Not authenticated")
        if self.roles.isdisjoint(held):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(self.roles))}",
            )
        return True


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response  # type: ignore[no-any-return]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Echoes or mints ``X-Request-ID`` and binds it to the log context."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or f"req_{secrets.token_urlsafe(16)}"
        request.state.request_id = request_id
        set_correlation_id(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response  # type: ignore[no-any-return]
