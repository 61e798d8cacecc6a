"""Session resolution middleware."""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from oidc_demo.auth.sessions import resolve_user
from oidc_demo.db.database import get_db

logger = logging.getLogger(__name__)

SKIP_PATHS = {"/favicon.ico"}


class SessionAuthMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.user`` (a User or None) to every request.

    Runs afresh per request; nothing is cached between requests.
    """

    def __init__(self, app, cookie_name: str):
        super().__init__(app)
        self.cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next):
        request.state.user = None
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            request.state.user = await resolve_user(get_db(request), session_id)

        logger.debug(
            "%s %s (session=%s, authenticated=%s)",
            request.method,
            request.url.path,
            session_id[:8] + "..." if session_id else None,
            request.state.user is not None,
        )
        return await call_next(request)
