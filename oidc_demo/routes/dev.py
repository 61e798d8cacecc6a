"""Development-only login bypass. Registered only when explicitly enabled."""

from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from oidc_demo.auth.sessions import establish_session
from oidc_demo.config import Settings, get_settings
from oidc_demo.db.database import get_db
from oidc_demo.db.queries import users as user_queries

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dev"])

DEV_USER = {
    "external_id": "dev-google-123",
    "email": "dev@example.com",
    "name": "Dev Tester",
    "picture": "",
}


@router.get("/dev-login")
async def dev_login(
    request: Request,
    db: aiosqlite.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Log in as a fixed synthetic user without talking to Google."""
    logger.info("Dev login endpoint called")
    user = await user_queries.upsert_user(db, **DEV_USER)

    response = RedirectResponse("/dashboard", status_code=302)
    await establish_session(db, request, response, user, settings)
    logger.info("Dev user logged in (user_id=%s, email=%s)", user.id, user.email)
    return response
