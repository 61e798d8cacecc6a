"""Login with Google: start the handshake and handle the provider callback."""

from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from oidc_demo.auth.guard import LOGIN_PATH
from oidc_demo.auth.provider import (
    DEFAULT_SCOPES,
    HandshakeFailure,
    IdentityProvider,
    get_identity_provider,
)
from oidc_demo.auth.sessions import establish_session
from oidc_demo.config import Settings, get_settings
from oidc_demo.db.database import get_db
from oidc_demo.db.queries import users as user_queries

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

LANDING_PATH = "/dashboard"


@router.get("/google")
async def google_login(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    """Redirect to Google's authorization page."""
    return await provider.begin_handshake(request, DEFAULT_SCOPES)


@router.get("/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
    db: aiosqlite.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Handle the redirect back from Google."""
    logger.info("User returned from Google, handling callback")
    result = await provider.complete_handshake(request)
    if isinstance(result, HandshakeFailure):
        logger.warning("Google login failed (%s): %s", result.reason, result.description)
        return RedirectResponse(LOGIN_PATH, status_code=302)

    user = await user_queries.upsert_user(
        db,
        external_id=result.external_id,
        email=result.email,
        name=result.display_name,
        picture=result.avatar_url,
    )
    logger.info("User stored in database (user_id=%s, email=%s)", user.id, user.email)

    # The session row is committed before the redirect leaves the server.
    response = RedirectResponse(LANDING_PATH, status_code=302)
    await establish_session(db, request, response, user, settings)
    logger.info("Google login succeeded, redirecting to %s", LANDING_PATH)
    return response
