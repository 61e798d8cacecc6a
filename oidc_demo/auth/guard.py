"""Route guard for pages that need a logged-in user."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import RedirectResponse

from oidc_demo.models.user import User

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class LoginRequired(Exception):
    """Raised by the guard; answered with a redirect to the login page."""

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path


def require_user(request: Request) -> User:
    """FastAPI dependency: the current user, or a redirect to /login."""
    user = getattr(request.state, "user", None)
    if user is None:
        logger.warning("Access denied, redirecting to %s (path=%s)", LOGIN_PATH, request.url.path)
        raise LoginRequired(request.url.path)
    logger.info("Access granted to %s (user_id=%s)", request.url.path, user.id)
    return user


async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    return RedirectResponse(LOGIN_PATH, status_code=302)
