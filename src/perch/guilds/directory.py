"""Guild directory protocol, permission flags and an in-memory directory.

The Authorizer only needs three questions answered: does this guild
exist, is this user a member, and does the member hold a permission.
Anything that answers them structurally is a ``GuildDirectory``; no base
class required.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

# Discord permission bits the control plane cares about
PERMISSION_FLAGS: dict[str, int] = {
    "CREATE_INSTANT_INVITE": 1 << 0,
    "KICK_MEMBERS": 1 << 1,
    "BAN_MEMBERS": 1 << 2,
    "ADMINISTRATOR": 1 << 3,
    "MANAGE_CHANNELS": 1 << 4,
    "MANAGE_GUILD": 1 << 5,
    "VIEW_AUDIT_LOG": 1 << 7,
    "VIEW_CHANNEL": 1 << 10,
    "SEND_MESSAGES": 1 << 11,
    "MANAGE_MESSAGES": 1 << 13,
    "MANAGE_ROLES": 1 << 28,
    "MANAGE_WEBHOOKS": 1 << 29,
}

# Distinct single bits, so the sum is their union
ALL_PERMISSIONS = sum(PERMISSION_FLAGS.values())


@dataclass(frozen=True, slots=True)
class Permissions:
    """A resolved permission bitfield.

    ``ADMINISTRATOR`` implies every other permission.
    """

    value: int = 0

    @classmethod
    def of(cls, *names: str) -> "Permissions":
        bits = 0
        for name in names:
            bits |= PERMISSION_FLAGS[name]
        return cls(bits)

    def has(self, name: str) -> bool:
        flag = PERMISSION_FLAGS.get(name)
        if flag is None:
            return False
        if self.value & PERMISSION_FLAGS["ADMINISTRATOR"]:
            return True
        return bool(self.value & flag)


@runtime_checkable
class Member(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def permissions(self) -> Permissions: ...


@runtime_checkable
class Guild(Protocol):
    @property
    def id(self) -> str: ...

    async def fetch_member(self, user_id: str) -> Member | None: ...


@runtime_checkable
class GuildDirectory(Protocol):
    """Lookup interface injected into the Authorizer."""

    async def get(self, guild_id: str) -> Guild | None: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StaticMember:
    id: str
    permissions: Permissions = field(default_factory=Permissions)


@dataclass(slots=True)
class StaticGuild:
    id: str
    members: dict[str, StaticMember] = field(default_factory=dict)

    async def fetch_member(self, user_id: str) -> StaticMember | None:
        return self.members.get(user_id)


class StaticGuildDirectory:
    """Guild directory backed by a dict. For development and tests.

    Usage::

        guilds = StaticGuildDirectory.build({
            "123": {"42": ["MANAGE_GUILD"], "7": []},
        })
    """

    __slots__ = ("_guilds",)

    def __init__(self, guilds: Iterable[StaticGuild] = ()) -> None:
        self._guilds = {guild.id: guild for guild in guilds}

    @classmethod
    def build(cls, spec: Mapping[str, Mapping[str, Iterable[str]]]) -> "StaticGuildDirectory":
        """Build from ``{guild_id: {user_id: [permission names]}}``."""
        return cls(
            StaticGuild(
                id=guild_id,
                members={
                    user_id: StaticMember(user_id, Permissions.of(*names))
                    for user_id, names in members.items()
                },
            )
            for guild_id, members in spec.items()
        )

    async def get(self, guild_id: str) -> StaticGuild | None:
        return self._guilds.get(guild_id)
