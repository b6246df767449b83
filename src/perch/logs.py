"""Logging setup and ANSI color helpers.

Perch logs through the standard ``logging`` module under the ``perch``
namespace (``perch.http``, ``perch.server``, ``perch.auth``,
``perch.routing``, ``perch.guilds``). Colors are plain ANSI escapes and
vanish when disabled or when stderr is not a terminal.
"""

import logging
import sys

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def use_color(stream: object | None = None) -> bool:
    """True if the output stream supports ANSI color."""
    s = stream or sys.stderr
    try:
        return s.isatty()  # type: ignore[union-attr]
    except Exception:
        return False


class Palette:
    """ANSI escape sequences: empty strings when color is disabled."""

    __slots__ = (
        "cyan",
        "green",
        "red",
        "reset",
        "strike",
        "white",
        "yellow",
    )

    def __init__(self, *, enabled: bool) -> None:
        if enabled:
            self.reset = "\033[0m"
            self.strike = "\033[9m"
            self.red = "\033[31m"
            self.green = "\033[32m"
            self.yellow = "\033[33m"
            self.cyan = "\033[36m"
            self.white = "\033[37m"
        else:
            self.reset = self.strike = ""
            self.red = self.green = self.yellow = self.cyan = self.white = ""


def configure_logging(level: str = "info", *, stream: object | None = None) -> None:
    """Attach a stream handler to the ``perch`` logger.

    Safe to call more than once; the handler is only added the first time.

    Raises:
        ValueError: If *level* is not a known level name.
    """
    try:
        numeric = _LEVELS[level.lower()]
    except KeyError:
        msg = f"Unknown log level {level!r}; expected one of {', '.join(_LEVELS)}"
        raise ValueError(msg) from None

    root = logging.getLogger("perch")
    root.setLevel(numeric)
    if not any(getattr(h, "_perch", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)  # type: ignore[arg-type]
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )
        handler._perch = True  # type: ignore[attr-defined]
        root.addHandler(handler)
