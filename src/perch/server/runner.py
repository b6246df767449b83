"""Server startup over pounce.

pounce's ``run()`` takes an import string, but perch has a live ``App``
object, so ``pounce.Server`` is driven directly with the ASGI callable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from perch.errors import ConfigurationError

if TYPE_CHECKING:
    from perch.app import App

logger = logging.getLogger("perch.server")


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    workers: int = 0,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """Start a pounce server for *app* and block until it stops.

    Args:
        app: Frozen perch App.
        host: Bind host address.
        port: Bind port number.
        workers: Worker count (0 = auto-detect from CPU count). Forced to 1
            when *reload* is on.
        reload: Restart on file changes (development).
        log_level: pounce's own log level.

    Raises:
        ConfigurationError: If pounce is not installed.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError:
        msg = (
            "Serving requires 'bengal-pounce' (Python 3.14+). "
            "Install it with: pip install bengal-pounce"
        )
        raise ConfigurationError(msg) from None

    config = ServerConfig(
        host=host,
        port=port,
        workers=1 if reload else workers,
        reload=reload,
        log_level=log_level,
    )
    logger.info("Listening at http://%s:%d", host, port)
    Server(config, app).run()
