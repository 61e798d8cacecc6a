"""Public pages, the protected dashboard and logout."""

from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from oidc_demo.auth.guard import require_user
from oidc_demo.auth.sessions import terminate_session
from oidc_demo.config import Settings, get_settings
from oidc_demo.db.database import get_db
from oidc_demo.db.queries import users as user_queries
from oidc_demo.models.user import User
from oidc_demo.templating import render_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


def _user_id(request: Request):
    user = getattr(request.state, "user", None)
    return user.id if user else None


@router.get("/")
async def home(request: Request):
    logger.info("Rendering home page (user_id=%s)", _user_id(request))
    return render_page(request, "index.html", {"title": "OpenID Connect Demo"})


@router.get("/login")
async def login(request: Request):
    logger.info("Rendering login page (user_id=%s)", _user_id(request))
    return render_page(request, "login.html", {"title": "Login"})


@router.get("/dashboard")
async def dashboard(
    request: Request,
    user: User = Depends(require_user),
    db: aiosqlite.Connection = Depends(get_db),
):
    logger.info("Rendering protected dashboard (user_id=%s)", user.id)
    users = await user_queries.list_users(db)
    return render_page(request, "dashboard.html", {"title": "Dashboard", "users": users})


@router.get("/logout")
async def logout(
    request: Request,
    db: aiosqlite.Connection = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    logger.info("User requested logout (user_id=%s)", _user_id(request))
    response = RedirectResponse("/", status_code=302)
    await terminate_session(db, request, response, settings)
    logger.info("Session closed, redirecting to home")
    return response
