"""Jinja2 page rendering."""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def render_page(request: Request, name: str, context: dict | None = None, status_code: int = 200):
    """Render a template with the values every page needs (current user, nav flags)."""
    settings = request.app.state.settings
    page_context = {
        "user": getattr(request.state, "user", None),
        "show_dev_login": settings.dev_login_enabled,
    }
    page_context.update(context or {})
    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
