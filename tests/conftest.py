"""Shared test fixtures for the OIDC demo."""

from __future__ import annotations

import aiosqlite
import pytest
import pytest_asyncio
from fastapi.responses import RedirectResponse
from httpx import ASGITransport, AsyncClient

from oidc_demo.auth.provider import DEFAULT_SCOPES, HandshakeFailure
from oidc_demo.config import Settings
from oidc_demo.db.database import run_migrations
from oidc_demo.main import create_app
from oidc_demo.models.user import ExternalProfile

FAKE_AUTHORIZE_URL = "https://idp.test/authorize"


class FakeIdentityProvider:
    """Stands in for Google: returns whatever profile or failure the test sets."""

    def __init__(self) -> None:
        self.profile = ExternalProfile(
            external_id="google-sub-001",
            email="alice@example.com",
            display_name="Alice Example",
            avatar_url="https://example.com/alice.png",
        )
        self.failure: HandshakeFailure | None = None
        self.requested_scopes: tuple[str, ...] | None = None

    async def begin_handshake(self, request, scopes=DEFAULT_SCOPES):
        self.requested_scopes = tuple(scopes)
        return RedirectResponse(f"{FAKE_AUTHORIZE_URL}?scope={'+'.join(scopes)}", status_code=302)

    async def complete_handshake(self, request):
        return self.failure or self.profile


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database with the schema applied."""
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys=ON")
    await run_migrations(conn)
    yield conn
    await conn.close()


# ---------------------------------------------------------------------------
# App / client fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        base_url="http://test",
        database_path=":memory:",
        app_env="development",
        enable_dev_login=True,
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest_asyncio.fixture
async def app(db, settings, identity_provider):
    """FastAPI app with the test DB and fake provider injected."""
    fastapi_app = create_app(settings, identity_provider=identity_provider)
    fastapi_app.state.db = db
    yield fastapi_app


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing. Keeps cookies between requests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
