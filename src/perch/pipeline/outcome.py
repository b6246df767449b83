"""Stage outcomes and the Stage protocol.

Stages never share mutable state with the dispatcher. They return a tagged
outcome and the dispatcher honors the first ``Respond``.
"""

from dataclasses import dataclass
from typing import Protocol, TypeAlias

from perch.errors import HTTPError, error_envelope
from perch.http.request import Request
from perch.http.response import Response, json_response


@dataclass(frozen=True, slots=True)
class Continue:
    """Proceed to the next stage (or the handler) with *request*."""

    request: Request


@dataclass(frozen=True, slots=True)
class Respond:
    """Short-circuit with *response*.

    ``fault`` is set when the response stands in for a caught exception, so
    the dispatcher can hand it to the error logger.
    """

    response: Response
    fault: BaseException | None = None


Outcome: TypeAlias = Continue | Respond


class Stage(Protocol):
    """Protocol for request gates; functions and callable objects both fit."""

    async def __call__(self, request: Request) -> Outcome: ...


def reject(status: int, error: str, message: str) -> Respond:
    """Short-circuit with a ``{error, message, statusCode}`` envelope."""
    return Respond(json_response(error_envelope(status, message, error=error), status))


def fault_response(exc: BaseException) -> Response:
    """Represent a caught exception as a JSON error response.

    HTTP errors keep their status; anything else becomes a 500 that
    carries the exception message.
    """
    if isinstance(exc, HTTPError):
        return json_response(exc.to_envelope(), exc.status)
    status = getattr(exc, "status", 500)
    if not isinstance(status, int) or not 400 <= status < 600:
        status = 500
    message = str(exc) or type(exc).__name__
    return json_response(error_envelope(status, message), status)
