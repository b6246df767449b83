"""OAuth2 login against Discord, and the built-in ``/auth/*`` routes.

Flow::

    GET /auth/login     -> 302 to Discord, oauth_state cookie set
    GET /auth/callback  -> state checked, code exchanged, user fetched,
                           session token cookie set, 302 to /
    GET /auth/logout    -> session cookie cleared, 302 to /

The session token expires when the provider's access token does.
"""

import logging
import secrets
from typing import Any
from urllib.parse import urlencode

import httpx

from perch.auth.tokens import TokenCodec
from perch.config import AppConfig
from perch.errors import HTTPError, OAuthError
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.route import Route, RouteSpec, parse_pattern

logger = logging.getLogger("perch.auth")

DISCORD_AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
DISCORD_USER_URL = "https://discord.com/api/users/@me"

STATE_COOKIE = "oauth_state"

# Seconds the login round-trip may take before the state cookie lapses
STATE_MAX_AGE = 600

# Used when the provider omits expires_in
DEFAULT_SESSION_TTL = 604800


class DiscordOAuth:
    """Authorization-code client for Discord.

    Usage::

        oauth = DiscordOAuth(config.client_id, config.client_secret, config.callback_url)
        url = oauth.authorize_url(state)
        grant = await oauth.exchange_code(code)
        user = await oauth.fetch_user(grant["access_token"])
    """

    __slots__ = ("_client", "client_id", "client_secret", "redirect_uri", "scopes", "timeout")

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        scopes: tuple[str, ...] = ("identify",),
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_config(cls, config: AppConfig, *, client: httpx.AsyncClient | None = None) -> "DiscordOAuth":
        return cls(
            config.client_id,
            config.client_secret,
            config.callback_url,
            scopes=config.oauth_scopes,
            client=client,
        )

    def authorize_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": " ".join(self.scopes),
                "state": state,
            }
        )
        return f"{DISCORD_AUTHORIZE_URL}?{query}"

    async def exchange_code(self, code: str) -> dict[str, Any]:
        """Trade an authorization code for the provider's token grant.

        Raises:
            OAuthError: If the provider rejects the code or is unreachable.
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        }
        grant = await self._request("POST", DISCORD_TOKEN_URL, data=data)
        if "access_token" not in grant:
            raise OAuthError(502, "Token response has no access_token")
        return grant

    async def fetch_user(self, access_token: str) -> dict[str, Any]:
        """Return the user object for *access_token*."""
        user = await self._request(
            "GET",
            DISCORD_USER_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if "id" not in user:
            raise OAuthError(502, "User response has no id")
        return user

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            if self._client is not None:
                response = await self._client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise OAuthError(502, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code != 200:
            raise OAuthError(response.status_code, response.text[:200])
        try:
            return response.json()
        except ValueError:
            raise OAuthError(502, "Provider returned a non-JSON body") from None


def auth_routes(oauth: DiscordOAuth, codec: TokenCodec, config: AppConfig) -> list[Route]:
    """Build the ``/auth/login``, ``/auth/callback`` and ``/auth/logout`` routes."""

    async def login() -> Response:
        state = secrets.token_urlsafe(24)
        return (
            Response(body="", status=302)
            .with_header("Location", oauth.authorize_url(state))
            .with_cookie(STATE_COOKIE, state, max_age=STATE_MAX_AGE, secure=config.cookie_secure)
        )

    async def callback(request: Request) -> Response:
        error = request.query.get("error")
        if error:
            raise HTTPError(400, f"Login was cancelled: {error}")

        code = request.query.get("code", "")
        state = request.query.get("state", "")
        expected = request.cookies.get(STATE_COOKIE, "")
        if not code or not expected or not secrets.compare_digest(state.encode(), expected.encode()):
            raise HTTPError(400, "Invalid OAuth state")

        try:
            grant = await oauth.exchange_code(code)
            user = await oauth.fetch_user(grant["access_token"])
        except OAuthError as exc:
            logger.warning("OAuth login failed: %s", exc)
            raise HTTPError(502, "Login with the identity provider failed") from exc

        expires_in = float(grant.get("expires_in") or DEFAULT_SESSION_TTL)
        token = codec.issue(str(user["id"]), expires_in=expires_in)
        logger.info("User %s logged in", user["id"])
        return (
            Response(body="", status=302)
            .with_header("Location", "/")
            .with_cookie(
                config.cookie_name,
                token,
                max_age=int(expires_in),
                secure=config.cookie_secure,
            )
            .without_cookie(STATE_COOKIE)
        )

    async def logout() -> Response:
        return (
            Response(body="", status=302)
            .with_header("Location", "/")
            .without_cookie(config.cookie_name)
        )

    return [
        Route("GET", parse_pattern("/auth/login"), RouteSpec(login, name="auth.login"), "perch.auth"),
        Route("GET", parse_pattern("/auth/callback"), RouteSpec(callback, name="auth.callback"), "perch.auth"),
        Route("GET", parse_pattern("/auth/logout"), RouteSpec(logout, name="auth.logout"), "perch.auth"),
    ]
