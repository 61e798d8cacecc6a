"""Tests for page routes, the route guard and the development login."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from oidc_demo.main import create_app

HOME_MARKER = "OpenID Connect flow overview"
LOGIN_MARKER = "Sign in with Google"
DASHBOARD_MARKER = "Protected dashboard"


@pytest.mark.asyncio
async def test_home_renders_for_anonymous(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert HOME_MARKER in resp.text


@pytest.mark.asyncio
async def test_login_page(client):
    resp = await client.get("/login")
    assert resp.status_code == 200
    assert LOGIN_MARKER in resp.text
    assert 'href="/auth/google"' in resp.text


@pytest.mark.asyncio
async def test_dashboard_requires_login(client):
    resp = await client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_dashboard_with_bogus_cookie_redirects(client, settings):
    client.cookies.set(settings.session_cookie_name, "not-a-real-session")
    resp = await client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_dev_login_logout_scenario(client):
    resp = await client.get("/dev-login")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/dashboard"

    resp = await client.get("/dashboard")
    assert resp.status_code == 200
    assert DASHBOARD_MARKER in resp.text
    assert "dev@example.com" in resp.text

    resp = await client.get("/logout")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"

    resp = await client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_home_renders_when_logged_in(client):
    await client.get("/dev-login")
    resp = await client.get("/")
    assert resp.status_code == 200
    assert HOME_MARKER in resp.text
    assert "Dev Tester" in resp.text


@pytest.mark.asyncio
async def test_session_cookie_flags(client, settings):
    resp = await client.get("/dev-login")
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith(f"{settings.session_cookie_name}=")
    assert "HttpOnly" in cookie
    assert "Max-Age=86400" in cookie
    assert "samesite=lax" in cookie.lower()


@pytest.mark.asyncio
async def test_logout_deletes_backing_session(client, db):
    await client.get("/dev-login")
    await client.get("/logout")
    async with db.execute("SELECT COUNT(*) FROM sessions") as cursor:
        (count,) = await cursor.fetchone()
    assert count == 0


@pytest.mark.asyncio
async def test_old_cookie_is_dead_after_logout(client, settings):
    await client.get("/dev-login")
    old_session = client.cookies.get(settings.session_cookie_name)
    await client.get("/logout")

    client.cookies.set(settings.session_cookie_name, old_session)
    resp = await client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_logout_when_anonymous(client):
    resp = await client.get("/logout")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/"


@pytest.mark.asyncio
async def test_deleted_user_is_treated_as_anonymous(client, db):
    await client.get("/dev-login")
    await db.execute("DELETE FROM users")
    await db.commit()

    resp = await client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_dev_login_twice_keeps_one_user(client, db):
    await client.get("/dev-login")
    await client.get("/dev-login")
    async with db.execute("SELECT COUNT(*) FROM users") as cursor:
        (users,) = await cursor.fetchone()
    async with db.execute("SELECT COUNT(*) FROM sessions") as cursor:
        (live_sessions,) = await cursor.fetchone()
    assert users == 1
    assert live_sessions == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"enable_dev_login": False},
        {"enable_dev_login": True, "app_env": "production"},
    ],
)
async def test_dev_login_not_exposed(db, settings, identity_provider, overrides):
    app = create_app(settings.model_copy(update=overrides), identity_provider=identity_provider)
    app.state.db = db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        resp = await client.get("/dev-login")
        assert resp.status_code == 404

        resp = await client.get("/login")
        assert "/dev-login" not in resp.text
