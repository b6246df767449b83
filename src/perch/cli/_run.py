"""``perch run``: start the server.

Either resolves an import string to a perch App, or builds one from the
environment with ``AppConfig.from_env()``.
"""

import argparse
import sys

from perch.app import App
from perch.cli._resolve import resolve_app
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.logs import configure_logging


def build_app(args: argparse.Namespace) -> App:
    """Resolve ``args.app`` or build an App from the environment."""
    if args.app:
        return resolve_app(args.app)
    app = App(AppConfig.from_env())
    if args.routes:
        app.mount_routes(args.routes)
    return app


def run_server(args: argparse.Namespace) -> None:
    """Start the perch server.

    Configuration faults (missing environment, broken route files,
    duplicate routes) are printed and exit with status 1 before anything
    binds a port.
    """
    try:
        app = build_app(args)
        configure_logging(args.log_level or app.config.log_level)
        app.run(host=args.host, port=args.port)
    except (ModuleNotFoundError, AttributeError, TypeError, ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
