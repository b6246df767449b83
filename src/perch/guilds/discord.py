"""Guild directory over the Discord REST API.

Resolves guilds and members with the bot token and computes member
permissions the way Discord does for guild-level checks: the ``@everyone``
role plus every role the member holds, with the owner holding everything.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx

from perch.errors import GuildLookupError
from perch.guilds.directory import ALL_PERMISSIONS, Permissions

logger = logging.getLogger("perch.guilds")

DISCORD_API = "https://discord.com/api/v10"


@dataclass(frozen=True, slots=True)
class DiscordMember:
    id: str
    permissions: Permissions


@dataclass(frozen=True, slots=True)
class DiscordGuild:
    """A guild snapshot: owner and role permission bits."""

    id: str
    owner_id: str
    role_permissions: dict[str, int]
    _directory: "DiscordGuildDirectory" = field(repr=False, compare=False)

    def resolve_permissions(self, user_id: str, role_ids: list[str]) -> Permissions:
        if user_id == self.owner_id:
            return Permissions(ALL_PERMISSIONS)
        # The @everyone role shares the guild's id
        bits = self.role_permissions.get(self.id, 0)
        for role_id in role_ids:
            bits |= self.role_permissions.get(role_id, 0)
        return Permissions(bits)

    async def fetch_member(self, user_id: str) -> DiscordMember | None:
        if not user_id.isdigit():
            return None
        data = await self._directory._get_json(f"/guilds/{self.id}/members/{user_id}")
        if data is None:
            return None
        role_ids = [str(role) for role in data.get("roles", ())]
        return DiscordMember(id=user_id, permissions=self.resolve_permissions(user_id, role_ids))


class DiscordGuildDirectory:
    """``GuildDirectory`` backed by the Discord bot API.

    Usage::

        guilds = DiscordGuildDirectory(config.bot_token)
        guild = await guilds.get("123456789012345678")

    Pass ``client`` to reuse a pooled ``httpx.AsyncClient``; otherwise a
    client is opened per lookup. A guild the bot cannot see is reported as
    absent, as is a user who is not a member.
    """

    __slots__ = ("_base_url", "_client", "_timeout", "_token")

    def __init__(
        self,
        bot_token: str,
        *,
        base_url: str = DISCORD_API,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._token = bot_token
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    async def get(self, guild_id: str) -> DiscordGuild | None:
        if not guild_id.isdigit():
            return None
        data = await self._get_json(f"/guilds/{guild_id}")
        if data is None:
            return None
        return DiscordGuild(
            id=str(data["id"]),
            owner_id=str(data.get("owner_id", "")),
            role_permissions={
                str(role["id"]): int(role.get("permissions", 0)) for role in data.get("roles", ())
            },
            _directory=self,
        )

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def _get_json(self, path: str) -> dict[str, Any] | None:
        """GET *path*; ``None`` for 403/404, ``GuildLookupError`` otherwise."""
        async with self._session() as client:
            try:
                response = await client.get(
                    f"{self._base_url}{path}",
                    headers={"Authorization": f"Bot {self._token}"},
                )
            except httpx.HTTPError as exc:
                msg = f"Discord request failed for {path}: {exc}"
                raise GuildLookupError(msg) from exc

        if response.status_code in (403, 404):
            return None
        if response.status_code != 200:
            logger.warning("Discord returned %d for %s", response.status_code, path)
            msg = f"Discord returned {response.status_code} for {path}"
            raise GuildLookupError(msg)
        return response.json()
