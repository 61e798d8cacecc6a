from __future__ import annotations

import aiosqlite

from oidc_demo.db.database import write_transaction
from oidc_demo.models.user import User


async def get_user(db: aiosqlite.Connection, user_id: int) -> User | None:
    async with db.execute("SELECT * FROM users WHERE id = ?", (user_id,)) as cursor:
        row = await cursor.fetchone()
        return User(**dict(row)) if row else None


async def list_users(db: aiosqlite.Connection) -> list[User]:
    """All users, newest first."""
    async with db.execute(
        "SELECT * FROM users ORDER BY created_at DESC, id DESC"
    ) as cursor:
        rows = await cursor.fetchall()
        return [User(**dict(row)) for row in rows]


async def upsert_user(
    db: aiosqlite.Connection,
    external_id: str,
    email: str | None = None,
    name: str | None = None,
    picture: str | None = None,
) -> User:
    """Create the user for ``external_id`` or refresh its profile fields.

    A single INSERT ... ON CONFLICT statement, so two concurrent logins for
    the same identity can never produce two rows. ``id`` and ``created_at``
    are never touched on update.
    """
    async with write_transaction(db), db.execute(
        """INSERT INTO users (external_id, email, name, picture, last_login_at)
           VALUES (?, ?, ?, ?, datetime('now'))
           ON CONFLICT(external_id) DO UPDATE SET
               email=excluded.email,
               name=excluded.name,
               picture=excluded.picture,
               last_login_at=excluded.last_login_at
           RETURNING *""",
        (external_id, email, name, picture),
    ) as cursor:
        row = await cursor.fetchone()
    return User(**dict(row))
