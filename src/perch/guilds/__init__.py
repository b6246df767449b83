"""Guild directory collaborators used by the Authorizer."""

from perch.guilds.directory import (
    Guild,
    GuildDirectory,
    Member,
    Permissions,
    StaticGuild,
    StaticGuildDirectory,
    StaticMember,
)

__all__ = [
    "Guild",
    "GuildDirectory",
    "Member",
    "Permissions",
    "StaticGuild",
    "StaticGuildDirectory",
    "StaticMember",
]
