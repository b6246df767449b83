"""Authenticator: cookie-carried JWT sessions.

Two independent checks:

1. The codec verifies signature and structure. Failure short-circuits with
   a 401 envelope describing what was wrong with the token.
2. The payload must name the caller (``id``) and its ``expiresAt``
   (milliseconds) must lie ahead of the clock. A missing id, or an expired
   or missing expiry, short-circuits with the generic ``Unauthorised``
   envelope.

On success the verified :class:`~perch.auth.session.Session` is attached
to the request handed to the next stage.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from perch.auth.session import Session
from perch.auth.tokens import TokenCodec
from perch.errors import TokenError, error_envelope
from perch.http.request import Request
from perch.http.response import json_response
from perch.pipeline.outcome import Continue, Outcome, Respond, fault_response, reject

logger = logging.getLogger("perch.auth")


class Authenticator:
    """Verify the session cookie and attach the session.

    Usage::

        authenticate = Authenticator(TokenCodec(config.secret_key))
        outcome = await authenticate(request)
    """

    __slots__ = ("_clock", "_codec", "_cookie_name")

    def __init__(
        self,
        codec: TokenCodec,
        *,
        cookie_name: str = "token",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._codec = codec
        self._cookie_name = cookie_name
        self._clock = clock

    async def __call__(self, request: Request) -> Outcome:
        raw = request.cookies.get(self._cookie_name)
        try:
            claims = self._codec.verify(raw)
        except TokenError as exc:
            logger.debug("Rejected token on %s %s: %s", request.method, request.path, exc.code)
            envelope = error_envelope(exc.status, exc.message, code=exc.code)
            return Respond(json_response(envelope, exc.status))
        except Exception as exc:
            return Respond(fault_response(exc), fault=exc)

        session = Session.from_claims(claims)
        if not session.user_id or session.is_expired(int(self._clock() * 1000)):
            return reject(401, "Unauthorised", "You are not authenticated.")

        return Continue(replace(request, session=session))
