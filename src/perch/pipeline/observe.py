"""Observational stages: the response line and the fault record.

Neither stage changes a response. The response logger fires exactly once
per response, after the status and elapsed time are final.
"""

import logging

from perch.http.request import Request
from perch.logs import Palette

logger = logging.getLogger("perch.http")


class ResponseLogger:
    """Emit one ``INFO`` line per response.

    Format::

        127.0.0.1 POST /guilds/:guild/settings -+> 403 in 2.41ms

    Status is colored by class (5xx red, 4xx yellow, 3xx cyan, 2xx green,
    other white); elapsed time by threshold (>=20ms red, >=5ms yellow,
    otherwise green). Unmatched requests log ``*`` as the pattern.
    """

    __slots__ = ("_palette",)

    def __init__(self, *, color: bool = True) -> None:
        self._palette = Palette(enabled=color)

    def status_color(self, status: int) -> str:
        c = self._palette
        if status >= 500:
            return c.red
        if status >= 400:
            return c.yellow
        if status >= 300:
            return c.cyan
        if status >= 200:
            return c.green
        return c.white

    def elapsed_color(self, elapsed_ms: float) -> str:
        c = self._palette
        if elapsed_ms >= 20:
            return c.red
        if elapsed_ms >= 5:
            return c.yellow
        return c.green

    def format(self, request: Request, status: int, elapsed_ms: float) -> str:
        c = self._palette
        elapsed = round(elapsed_ms, 2)
        return (
            f"{request.client_ip} {request.method} {request.route or '*'} "
            f"{c.strike}-+>{c.reset} "
            f"{self.status_color(status)}{status}{c.reset} "
            f"{c.cyan}in{c.reset} {self.elapsed_color(elapsed)}{elapsed:.2f}ms{c.reset}"
        )

    def __call__(self, request: Request, status: int, elapsed_ms: float) -> None:
        logger.info("%s", self.format(request, status, elapsed_ms))


class ErrorLogger:
    """Record a fault at ``ERROR`` with its traceback. Produces no response."""

    __slots__ = ()

    def __call__(self, request: Request, exc: BaseException) -> None:
        logger.error(
            "%s %s failed: %s: %s",
            request.method,
            request.path,
            type(exc).__name__,
            exc,
            exc_info=exc,
        )
