"""Session tokens and the OAuth2 login flow."""

from perch.auth.oauth import DiscordOAuth, auth_routes
from perch.auth.session import Session
from perch.auth.tokens import TokenCodec

__all__ = ["DiscordOAuth", "Session", "TokenCodec", "auth_routes"]
