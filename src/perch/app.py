"""Perch application class.

Mutable during setup (route roots, explicit routes, lifecycle hooks).
Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked:
every routes directory is scanned, every builder is called with the
:class:`~perch.routing.context.RouteContext`, and the resulting table is
locked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch.auth.oauth import DiscordOAuth, auth_routes
from perch.auth.tokens import TokenCodec
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.guilds.directory import GuildDirectory
from perch.logs import use_color
from perch.pipeline.authn import Authenticator
from perch.pipeline.authz import Authorizer
from perch.pipeline.body import BodyNormalizer
from perch.pipeline.observe import ErrorLogger, ResponseLogger
from perch.routing.context import RouteContext
from perch.routing.route import HTTP_METHODS, Route, RouteSpec, parse_pattern
from perch.routing.scanner import scan_routes
from perch.routing.table import RouteTable
from perch.server.dispatch import Pipeline, handle_request

logger = logging.getLogger("perch.server")


@dataclass(slots=True)
class _PendingRoute:
    """A decorator-registered route waiting to be compiled."""

    path: str
    handler: Callable[..., Any]
    methods: list[str] | None
    authenticate: bool
    authorize: bool
    name: str | None


class App:
    """The perch application.

    Usage::

        app = App(AppConfig.from_env(), guilds=StaticGuildDirectory.build({...}))
        app.mount_routes("routes")

        @app.route("/health")
        def health():
            return {"ok": True}

    With no explicit collaborators the app builds them from ``config``: a
    ``TokenCodec`` from ``secret_key``, a ``DiscordGuildDirectory`` from
    ``bot_token`` and a ``DiscordOAuth`` client (plus the ``/auth/*``
    routes) when the client id and secret are set.

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread scans and compiles the route table, even when several ASGI
        workers receive their first request at once.
    """

    __slots__ = (
        "_context",
        "_freeze_lock",
        "_frozen",
        "_pending_routes",
        "_pipeline",
        "_routes_dirs",
        "_shutdown_hooks",
        "_startup_hooks",
        "_table",
        "codec",
        "config",
        "guilds",
        "oauth",
        "state",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        guilds: GuildDirectory | None = None,
        codec: TokenCodec | None = None,
        oauth: DiscordOAuth | None = None,
        state: dict[str, Any] | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.codec = codec
        if self.codec is None and self.config.secret_key:
            self.codec = TokenCodec(self.config.secret_key)
        self.guilds = guilds
        if self.guilds is None and self.config.bot_token:
            from perch.guilds.discord import DiscordGuildDirectory

            self.guilds = DiscordGuildDirectory(self.config.bot_token)
        self.oauth = oauth
        if self.oauth is None and self.config.oauth_enabled:
            self.oauth = DiscordOAuth.from_config(self.config)
        self.state: dict[str, Any] = dict(state or {})

        self._routes_dirs: list[Path] = []
        if self.config.routes_dir is not None:
            self._routes_dirs.append(Path(self.config.routes_dir))
        self._pending_routes: list[_PendingRoute] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state: set during _freeze()
        self._table: RouteTable | None = None
        self._pipeline: Pipeline | None = None
        self._context: RouteContext | None = None

    # -- Route registration --

    def mount_routes(self, routes_dir: str | Path) -> None:
        """Add a handler root to scan at freeze time."""
        self._check_not_frozen()
        self._routes_dirs.append(Path(routes_dir))

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        authenticate: bool = False,
        authorize: bool = False,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a route handler via decorator.

        Args:
            path: URL pattern. Use ``:param`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            authenticate: Require a valid session cookie.
            authorize: Require guild management rights on ``:guild``.
            name: Optional route name.
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._pending_routes.append(
                _PendingRoute(path, func, methods, authenticate, authorize, name)
            )
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after the route table is frozen.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> list[Route]:
        """All routes in the frozen table. Freezes the app if needed."""
        self._ensure_frozen()
        assert self._table is not None
        return self._table.routes

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce.

        Debug mode runs a single reloading worker; otherwise
        ``config.workers`` workers.
        """
        self._ensure_frozen()

        from perch.server.runner import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            reload=self.config.debug,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._table is not None
        assert self._pipeline is not None
        assert self._context is not None

        await handle_request(
            scope,
            receive,
            send,
            table=self._table,
            pipeline=self._pipeline,
            context=self._context,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup so route and configuration faults stop
        the server before it accepts a single request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.error("Startup failed: %s", exc)
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.

        Raises:
            ConfigurationError: On any route load, duplicate or gate
                wiring fault. The app stays unfrozen.
        """
        context = RouteContext(
            config=self.config,
            guilds=self.guilds,
            codec=self.codec,
            oauth=self.oauth,
            state=self.state,
        )

        # 1. Scan handler roots and build their routes
        descriptors = []
        for root in self._routes_dirs:
            descriptors.extend(scan_routes(root))
        table = RouteTable.from_descriptors(descriptors, context)

        # 2. Decorator routes
        for pending in self._pending_routes:
            pattern = parse_pattern(pending.path)
            spec = RouteSpec(
                handler=pending.handler,
                authenticate=pending.authenticate,
                authorize=pending.authorize,
                name=pending.name,
            )
            source = f"{pending.handler.__module__}.{pending.handler.__qualname__}"
            for verb in pending.methods or ["GET"]:
                method = verb.upper()
                if method not in HTTP_METHODS:
                    msg = f"Unsupported HTTP method {verb!r} for route {pending.path!r}"
                    raise ConfigurationError(msg)
                table.register(Route(method, pattern, spec, source))

        # 3. Built-in login routes
        if self.oauth is not None and self.codec is not None:
            for route in auth_routes(self.oauth, self.codec, self.config):
                table.register(route)

        self._check_gates(table)
        table.freeze()

        self._pipeline = Pipeline(
            body=BodyNormalizer(),
            authenticate=(
                Authenticator(self.codec, cookie_name=self.config.cookie_name)
                if self.codec is not None
                else None
            ),
            authorize=(
                Authorizer(self.guilds, supers=self.config.supers)
                if self.guilds is not None
                else None
            ),
            response_logger=ResponseLogger(color=self.config.log_color and use_color()),
            error_logger=ErrorLogger(),
        )
        self._context = context
        self._table = table
        self._frozen = True

        logger.info("Loaded %d route(s)", len(table))

    def _check_gates(self, table: RouteTable) -> None:
        """Refuse routes whose gates have no collaborator to run them."""
        for route in table.routes:
            if route.spec.needs_session and self.codec is None:
                msg = (
                    f"Route {route.method} {route.path} requires authentication "
                    f"but no token codec is configured (set ENCRYPTION_KEY)."
                )
                raise ConfigurationError(msg)
            if route.spec.authorize and self.guilds is None:
                msg = (
                    f"Route {route.method} {route.path} requires authorization "
                    f"but no guild directory is configured (set DISCORD_TOKEN)."
                )
                raise ConfigurationError(msg)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
