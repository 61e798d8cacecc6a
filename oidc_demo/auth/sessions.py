"""Server-side session management.

A session row holds only the user id. The full user is loaded again on
every request, so profile changes never require invalidating sessions.
"""

from __future__ import annotations

import logging
import secrets

import aiosqlite
from fastapi import Request, Response

from oidc_demo.config import Settings
from oidc_demo.db.database import write_transaction
from oidc_demo.db.queries import users as user_queries
from oidc_demo.models.user import Session, User

logger = logging.getLogger(__name__)


async def create_session(db: aiosqlite.Connection, user_id: int, ttl_hours: int = 24) -> str:
    """Create a new session and return the session ID.

    Returns only after the row is committed.
    """
    session_id = secrets.token_urlsafe(48)
    async with write_transaction(db):
        await db.execute(
            "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, datetime('now', ?))",
            (session_id, user_id, f"+{ttl_hours} hours"),
        )
    return session_id


async def load_session(db: aiosqlite.Connection, session_id: str) -> Session | None:
    """Return the live session for ``session_id``, or None if unknown or expired.

    An expired row is deleted on sight.
    """
    async with db.execute(
        "SELECT *, expires_at > datetime('now') AS alive FROM sessions WHERE id = ?",
        (session_id,),
    ) as cursor:
        row = await cursor.fetchone()
    if row is None:
        return None
    if not row["alive"]:
        await delete_session(db, session_id)
        return None
    return Session(**dict(row))


async def delete_session(db: aiosqlite.Connection, session_id: str) -> None:
    async with write_transaction(db):
        await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))


async def cleanup_expired_sessions(db: aiosqlite.Connection) -> int:
    """Delete expired sessions. Returns count deleted."""
    async with write_transaction(db):
        result = await db.execute("DELETE FROM sessions WHERE expires_at <= datetime('now')")
    return result.rowcount


async def resolve_user(db: aiosqlite.Connection, session_id: str | None) -> User | None:
    """Rehydrate the principal for a session token.

    A missing, expired or dangling session (its user was deleted) yields
    None: the request is anonymous, not failed.
    """
    if not session_id:
        return None
    session = await load_session(db, session_id)
    if session is None:
        return None
    logger.debug("Loading user from session (user_id=%s)", session.user_id)
    user = await user_queries.get_user(db, session.user_id)
    if user is None:
        logger.warning("Session %s... points at missing user %s", session_id[:8], session.user_id)
    return user


async def establish_session(
    db: aiosqlite.Connection,
    request: Request,
    response: Response,
    user: User,
    settings: Settings,
) -> str:
    """Log ``user`` in: persist the session, then attach its cookie to ``response``.

    Any previous session on this client is dropped first. Errors from the
    store propagate so the caller never redirects as if login succeeded.
    """
    previous = request.cookies.get(settings.session_cookie_name)
    if previous:
        await delete_session(db, previous)

    logger.debug("Saving user reference into session (user_id=%s)", user.id)
    session_id = await create_session(db, user.id, settings.session_ttl_hours)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        max_age=settings.session_max_age,
        secure=settings.cookie_secure,
    )
    request.state.user = user
    logger.info("Session saved for user %s", user.id)
    return session_id


async def terminate_session(
    db: aiosqlite.Connection,
    request: Request,
    response: Response,
    settings: Settings,
) -> None:
    """Log the client out: delete the backing row and clear the cookie.

    The row is deleted before anything else so a store failure surfaces
    instead of leaving a live session behind a cleared cookie.
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    if session_id:
        await delete_session(db, session_id)
    request.state.user = None
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
