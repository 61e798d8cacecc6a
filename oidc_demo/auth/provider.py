"""Identity provider adapter: Google OpenID Connect via Authlib.

The protocol work (discovery, code exchange, ID token validation) is done
by Authlib. This module only turns its results into an ExternalProfile or
a HandshakeFailure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import Request
from starlette.responses import Response

from oidc_demo.config import Settings
from oidc_demo.models.user import ExternalProfile

logger = logging.getLogger(__name__)

GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
DEFAULT_SCOPES = ("openid", "email", "profile")


@dataclass(frozen=True)
class HandshakeFailure:
    """The provider rejected the login or the user cancelled it."""

    reason: str
    description: str | None = None


@runtime_checkable
class IdentityProvider(Protocol):
    """Interface for the external login handshake."""

    async def begin_handshake(
        self, request: Request, scopes: tuple[str, ...] = DEFAULT_SCOPES
    ) -> Response: ...

    async def complete_handshake(self, request: Request) -> ExternalProfile | HandshakeFailure: ...


class GoogleIdentityProvider:
    """Authorization-code flow against Google.

    Authlib keeps ``state`` and ``nonce`` in ``request.session``, so the app
    must run Starlette's SessionMiddleware.
    """

    def __init__(self, settings: Settings) -> None:
        self._redirect_uri = settings.callback_url
        self._oauth = OAuth()
        self._oauth.register(
            name="google",
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            server_metadata_url=GOOGLE_DISCOVERY_URL,
            client_kwargs={"scope": " ".join(DEFAULT_SCOPES)},
        )

    @property
    def client(self):
        return self._oauth.google

    async def begin_handshake(
        self, request: Request, scopes: tuple[str, ...] = DEFAULT_SCOPES
    ) -> Response:
        logger.info("Starting Google OpenID Connect flow (redirect_uri=%s)", self._redirect_uri)
        return await self.client.authorize_redirect(
            request, self._redirect_uri, scope=" ".join(scopes)
        )

    async def complete_handshake(self, request: Request) -> ExternalProfile | HandshakeFailure:
        error = request.query_params.get("error")
        if error:
            return HandshakeFailure(error, request.query_params.get("error_description"))

        try:
            token = await self.client.authorize_access_token(request)
        except OAuthError as e:
            return HandshakeFailure(e.error or "oauth_error", e.description)

        userinfo = token.get("userinfo")
        if not userinfo:
            userinfo = await self.client.userinfo(token=token)

        logger.info("Received profile from Google (sub=%s)", userinfo["sub"])
        return profile_from_claims(userinfo)


def profile_from_claims(claims: dict) -> ExternalProfile:
    """Map OpenID Connect standard claims onto an ExternalProfile."""
    return ExternalProfile(
        external_id=str(claims["sub"]),
        email=claims.get("email"),
        display_name=claims.get("name"),
        avatar_url=claims.get("picture"),
    )


def get_identity_provider(request: Request) -> IdentityProvider:
    """FastAPI dependency: the provider configured on the app."""
    return request.app.state.identity_provider
