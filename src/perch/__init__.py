"""Perch: the HTTP control plane for a guild bot.

Routes come from a directory tree; every request passes a fixed set of
gates (body normalizer, session authenticator, guild authorizer) before
its handler runs, and every response is logged once.

Basic usage::

    from perch import App, AppConfig

    app = App(AppConfig.from_env())
    app.mount_routes("routes")
    app.run()

A route file ``routes/guilds/[guild]/settings.py``::

    from perch import RouteSpec

    def post(ctx):
        async def handler(guild: str, body: dict):
            return {"guild": guild, "saved": body}

        return RouteSpec(handler=handler, authorize=True)
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Forbidden",
    "HTTPError",
    "NotFound",
    "PerchError",
    "Redirect",
    "Request",
    "Response",
    "RouteContext",
    "RouteSpec",
    "Unauthorized",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` cheap for route files that only need RouteSpec.
    """
    if name == "App":
        from perch.app import App

        return App

    if name == "AppConfig":
        from perch.config import AppConfig

        return AppConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from perch.http import response as _resp

        return getattr(_resp, name)

    if name in ("RouteContext", "RouteSpec"):
        from perch import routing as _routing

        return getattr(_routing, name)

    if name in ("ConfigurationError", "Forbidden", "HTTPError", "NotFound", "PerchError", "Unauthorized"):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
