"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env()`` reads the process
environment once at startup and fails loudly when something required is
missing.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from perch.errors import ConfigurationError

# Environment variables that must be present for from_env()
_REQUIRED_ENV: tuple[str, ...] = (
    "HTTP_EXTERNAL",
    "DISCORD_CLIENT_ID",
    "DISCORD_SECRET",
    "ENCRYPTION_KEY",
    "HTTP_BIND",
)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have development defaults. Override what you need::

        config = AppConfig(secret_key="s3cr3t", supers=frozenset({"1234"}))
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    workers: int = 0  # 0 = let pounce pick from CPU count

    # External base URL, used to build the OAuth callback
    external_url: str = "http://127.0.0.1:8080"

    # Identity provider
    client_id: str = ""
    client_secret: str = ""
    oauth_scopes: tuple[str, ...] = ("identify",)

    # Session tokens
    secret_key: str = ""
    cookie_name: str = "token"
    cookie_secure: bool = False

    # Guild directory (Discord bot token) and privileged operators
    bot_token: str = ""
    supers: frozenset[str] = frozenset()

    # Route handler root
    routes_dir: str | Path | None = None

    # Logging
    log_level: str = "info"
    log_color: bool = True

    @property
    def callback_url(self) -> str:
        """OAuth redirect URI registered with the provider."""
        return f"{self.external_url.rstrip('/')}/auth/callback"

    @property
    def oauth_enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from environment variables.

        Required: ``HTTP_EXTERNAL``, ``DISCORD_CLIENT_ID``, ``DISCORD_SECRET``,
        ``ENCRYPTION_KEY``, ``HTTP_BIND`` (``port`` or ``host:port``).

        Optional: ``SUPERS`` (comma-separated user ids), ``DISCORD_TOKEN``,
        ``HTTP_ROUTES``, ``LOG_LEVEL``, ``HTTP_SECURE_COOKIES``.

        Raises:
            ConfigurationError: If a required variable is missing or invalid.
        """
        env = os.environ if env is None else env

        missing = [name for name in _REQUIRED_ENV if not env.get(name, "").strip()]
        if missing:
            msg = f"Missing required environment variables: {', '.join(missing)}"
            raise ConfigurationError(msg)

        host, port = _parse_bind(env["HTTP_BIND"])
        supers = frozenset(
            part.strip() for part in env.get("SUPERS", "").split(",") if part.strip()
        )
        return cls(
            host=host,
            port=port,
            external_url=env["HTTP_EXTERNAL"].strip(),
            client_id=env["DISCORD_CLIENT_ID"].strip(),
            client_secret=env["DISCORD_SECRET"].strip(),
            secret_key=env["ENCRYPTION_KEY"],
            bot_token=env.get("DISCORD_TOKEN", "").strip(),
            supers=supers,
            routes_dir=env.get("HTTP_ROUTES") or None,
            log_level=env.get("LOG_LEVEL", "info").lower(),
            cookie_secure=env.get("HTTP_SECURE_COOKIES", "").lower() in ("1", "true", "yes"),
        )


def _parse_bind(value: str) -> tuple[str, int]:
    """Parse ``HTTP_BIND`` as ``port`` or ``host:port``."""
    host = "0.0.0.0"
    raw_port = value.strip()
    if ":" in raw_port:
        host, _, raw_port = raw_port.rpartition(":")
    try:
        port = int(raw_port)
    except ValueError:
        msg = f"HTTP_BIND must be a port or host:port, got {value!r}"
        raise ConfigurationError(msg) from None
    if not 0 < port < 65536:
        msg = f"HTTP_BIND port out of range: {port}"
        raise ConfigurationError(msg)
    return host, port
