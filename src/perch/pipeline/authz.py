"""Authorizer: guild management rights, fail closed.

Runs after the Authenticator. The caller may act on a guild when they
hold its ``MANAGE_GUILD`` permission or their id is on the privileged
operator allow-list. A missing guild is a 404 before membership is ever
consulted. Collaborator faults become the fault's own response and never
fall through to the handler.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from perch.guilds.directory import GuildDirectory
from perch.http.request import Request
from perch.pipeline.outcome import Continue, Outcome, Respond, fault_response, reject

logger = logging.getLogger("perch.auth")


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    """Whether the session may act on the guild, and why."""

    allowed: bool
    reason: str


class Authorizer:
    """Check that the session user may manage the route's guild.

    Usage::

        authorize = Authorizer(guilds, supers=config.supers)
        outcome = await authorize(request)  # request.session must be set
    """

    __slots__ = ("_guilds", "_param", "_permission", "_supers")

    def __init__(
        self,
        guilds: GuildDirectory,
        *,
        supers: Iterable[str] = (),
        param: str = "guild",
        permission: str = "MANAGE_GUILD",
    ) -> None:
        self._guilds = guilds
        self._supers = frozenset(supers)
        self._param = param
        self._permission = permission

    async def decide(self, guild_id: str, user_id: str) -> AuthorizationDecision:
        """Resolve the decision for *user_id* on *guild_id*.

        Exceptions from the guild directory propagate to the caller.
        """
        guild = await self._guilds.get(guild_id)
        if guild is None:
            return AuthorizationDecision(False, "guild_not_found")

        member = await guild.fetch_member(user_id)
        if member is not None and member.permissions.has(self._permission):
            return AuthorizationDecision(True, "manager")
        if user_id in self._supers:
            return AuthorizationDecision(True, "privileged")
        return AuthorizationDecision(False, "forbidden")

    async def __call__(self, request: Request) -> Outcome:
        session = request.session
        if session is None:
            return reject(401, "Unauthorised", "You are not authenticated.")

        guild_id = request.path_params.get(self._param, "")
        try:
            decision = await self.decide(guild_id, session.user_id)
        except Exception as exc:
            return Respond(fault_response(exc), fault=exc)

        if decision.reason == "guild_not_found":
            return reject(404, "Not Found", "The requested resource could not be found.")
        if not decision.allowed:
            logger.info(
                "Denied user %s on guild %s (%s %s)",
                session.user_id,
                guild_id,
                request.method,
                request.path,
            )
            return reject(403, "Forbidden", "You are not permitted for this action.")
        return Continue(request)
