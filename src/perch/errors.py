"""Perch exception hierarchy.

Shared across the scanner, route table, pipeline stages and dispatcher so
every module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when startup configuration is invalid.

    Fatal: raised before the app starts serving requests.
    """


class RouteLoadError(ConfigurationError):
    """One or more route files could not be loaded.

    Collects every failure from a scan so the operator sees the whole
    broken set at once instead of fixing files one restart at a time.
    """

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        self.failures = tuple(failures)
        lines = [f"  {path}: {type(exc).__name__}: {exc}" for path, exc in self.failures]
        noun = "file" if len(self.failures) == 1 else "files"
        super().__init__(f"Failed to load {len(self.failures)} route {noun}:\n" + "\n".join(lines))


class DuplicateRouteError(ConfigurationError):
    """Two routes normalize to the same method and URL pattern."""

    def __init__(self, method: str, pattern: str, first: str, second: str) -> None:
        self.method = method
        self.pattern = pattern
        super().__init__(
            f"Duplicate route {method} {pattern}: defined by {first} and {second}"
        )


# Reason phrases used in the JSON error envelope
_REASONS: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def reason_phrase(status: int) -> str:
    """Return the standard reason phrase for *status*."""
    if status in _REASONS:
        return _REASONS[status]
    return "Internal Server Error" if status >= 500 else "Error"


def error_envelope(status: int, message: str, *, error: str | None = None, **extra: Any) -> dict[str, Any]:
    """Build the ``{error, message, statusCode}`` envelope for *status*."""
    envelope: dict[str, Any] = {
        "error": error or reason_phrase(status),
        "message": message,
        "statusCode": status,
    }
    envelope.update(extra)
    return envelope


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or stages. The dispatcher converts it into a JSON
    envelope whose ``statusCode`` matches the status line.
    """

    status: int
    detail: str = ""
    error: str | None = None

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    def to_envelope(self) -> dict[str, Any]:
        return error_envelope(
            self.status,
            self.detail or reason_phrase(self.status),
            error=self.error,
        )


class NotFound(HTTPError):  # noqa: N818
    """404: the route or resource does not exist."""

    def __init__(self, detail: str = "The requested resource could not be found.") -> None:
        super().__init__(status=404, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401: the caller is not authenticated."""

    def __init__(self, detail: str = "You are not authenticated.") -> None:
        super().__init__(status=401, detail=detail, error="Unauthorised")


class Forbidden(HTTPError):  # noqa: N818
    """403: the caller is authenticated but not permitted."""

    def __init__(self, detail: str = "You are not permitted for this action.") -> None:
        super().__init__(status=403, detail=detail)


class TokenError(PerchError):
    """Session token could not be verified.

    ``code`` is one of ``token_missing``, ``token_malformed`` or
    ``token_invalid``.
    """

    status = 401

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class OAuthError(PerchError):
    """The identity provider rejected an exchange or returned garbage."""

    def __init__(self, status: int, detail: str) -> None:
        self.status = status
        self.detail = detail
        super().__init__(f"OAuth provider error ({status}): {detail}")


class GuildLookupError(PerchError):
    """The guild directory could not answer a lookup."""
