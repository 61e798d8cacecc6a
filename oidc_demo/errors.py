"""Error boundary: every failure leaves the app as one negotiated response."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from oidc_demo.models.common import ErrorResponse
from oidc_demo.templating import render_page

logger = logging.getLogger(__name__)

MASKED_JSON_MESSAGE = "Internal server error"
MASKED_PAGE_MESSAGE = "An unexpected error occurred."


class AppError(Exception):
    """An error with an HTTP status. 4xx messages are shown to the client."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


def _accept_quality(accept: str) -> dict[str, float]:
    qualities = {}
    for part in accept.split(","):
        media_type, *params = [p.strip() for p in part.split(";")]
        if not media_type:
            continue
        q = 1.0
        for param in params:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 0.0
        qualities[media_type.lower()] = q
    return qualities


def _accepts(accept: str, media_type: str) -> bool:
    """Express-style check: the most specific matching range decides, q=0 refuses."""
    if not accept:
        return True
    qualities = _accept_quality(accept)
    major = media_type.split("/")[0]
    for candidate in (media_type, f"{major}/*", "*/*"):
        if candidate in qualities:
            return qualities[candidate] > 0
    return False


def wants_json(request: Request) -> bool:
    """True when the client takes JSON but not an HTML page."""
    accept = request.headers.get("accept", "")
    return _accepts(accept, "application/json") and not _accepts(accept, "text/html")


def error_response(request: Request, status_code: int, message: str | None):
    if status_code >= 500 or not message:
        json_message, page_message = MASKED_JSON_MESSAGE, MASKED_PAGE_MESSAGE
    else:
        json_message = page_message = message

    if wants_json(request):
        body = ErrorResponse(message=json_message)
        return JSONResponse(status_code=status_code, content=body.model_dump())
    return render_page(
        request,
        "error.html",
        {"title": "Error", "status_code": status_code, "message": page_message},
        status_code=status_code,
    )


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Request failed (%s %s): %s", request.method, request.url.path, exc.message)
    return error_response(request, exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Outermost catch-all for failures no handler claimed."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error while processing request (%s %s)",
                request.method,
                request.url.path,
            )
            return error_response(request, 500, None)
