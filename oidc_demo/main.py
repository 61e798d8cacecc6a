"""OIDC demo: FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from oidc_demo.auth.guard import LoginRequired, login_required_handler
from oidc_demo.auth.middleware import SessionAuthMiddleware
from oidc_demo.auth.provider import GoogleIdentityProvider, IdentityProvider
from oidc_demo.auth.sessions import cleanup_expired_sessions
from oidc_demo.config import Settings, settings as default_settings
from oidc_demo.db.database import close_db, open_db
from oidc_demo.errors import (
    AppError,
    ErrorBoundaryMiddleware,
    app_error_handler,
    http_exception_handler,
)
from oidc_demo.routes.auth import router as auth_router
from oidc_demo.routes.dev import router as dev_router
from oidc_demo.routes.pages import router as pages_router

logging.basicConfig(level=getattr(logging, default_settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

HANDSHAKE_COOKIE = "oidc_demo_handshake"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("Starting OIDC demo server...")
    app.state.db = await open_db(settings.database_path)

    deleted = await cleanup_expired_sessions(app.state.db)
    if deleted:
        logger.info("Session cleanup: removed %d expired sessions", deleted)

    logger.info("Server listening on %s", settings.base_url)
    logger.info("Login flow ready: /auth/google -> /auth/google/callback -> /dashboard")
    yield

    await close_db(app.state.db)
    app.state.db = None
    logger.info("OIDC demo server stopped")


def create_app(
    settings: Settings | None = None,
    identity_provider: IdentityProvider | None = None,
) -> FastAPI:
    """Build the application with its process-wide dependencies on ``app.state``."""
    settings = settings or default_settings

    app = FastAPI(
        title="OIDC Demo",
        description="Login with Google via OpenID Connect",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.db = None
    app.state.identity_provider = identity_provider or GoogleIdentityProvider(settings)

    # Middleware order: Starlette LIFO, last added runs outermost (first).
    # We want: request → ErrorBoundary → handshake cookie → session auth → routes
    app.add_middleware(SessionAuthMiddleware, cookie_name=settings.session_cookie_name)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=HANDSHAKE_COOKIE,
        max_age=600,
        same_site="lax",
        https_only=settings.cookie_secure,
    )
    app.add_middleware(ErrorBoundaryMiddleware)

    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(pages_router)
    app.include_router(auth_router)
    if settings.dev_login_enabled:
        logger.warning("Development login bypass enabled at /dev-login")
        app.include_router(dev_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("oidc_demo.main:app", host="0.0.0.0", port=default_settings.port)
