"""Registration context handed to every route-file builder."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch.config import AppConfig

if TYPE_CHECKING:
    from perch.auth.oauth import DiscordOAuth
    from perch.auth.tokens import TokenCodec
    from perch.guilds.directory import GuildDirectory


@dataclass(frozen=True, slots=True)
class RouteContext:
    """Shared collaborators a builder may close over.

    ``state`` carries application objects (a bot client, a database)
    that handlers need but perch knows nothing about.

    Usage in a route file::

        def post(ctx):
            async def handler(guild: str, body: dict):
                return {"guild": guild, "saved": body}

            return RouteSpec(handler=handler, authorize=True)
    """

    config: AppConfig
    guilds: "GuildDirectory | None" = None
    codec: "TokenCodec | None" = None
    oauth: "DiscordOAuth | None" = None
    state: dict[str, Any] = field(default_factory=dict)
