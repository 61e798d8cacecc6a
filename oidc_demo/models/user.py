from __future__ import annotations

from pydantic import BaseModel


class User(BaseModel):
    id: int
    external_id: str
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    created_at: str
    last_login_at: str | None = None


class ExternalProfile(BaseModel):
    """Identity asserted by the provider at the end of a handshake."""

    external_id: str
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


class Session(BaseModel):
    id: str
    user_id: int
    expires_at: str
    created_at: str | None = None
