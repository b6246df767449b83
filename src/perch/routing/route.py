"""Route value types: segments, descriptors, specs, routes and matches."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from perch.errors import ConfigurationError

# HTTP methods a route file may export (compared case-insensitively)
HTTP_METHODS: frozenset[str] = frozenset(
    {"DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"}
)


@dataclass(frozen=True, slots=True)
class Segment:
    """One segment of a URL pattern.

    Literal: ``guilds``   (is_param=False)
    Param:   ``:guild``   (is_param=True, value="guild")
    """

    value: str
    is_param: bool = False

    def __str__(self) -> str:
        return f":{self.value}" if self.is_param else self.value


def format_pattern(segments: tuple[Segment, ...]) -> str:
    """Render segments as a URL pattern; the empty pattern is ``/``."""
    return "/" + "/".join(str(seg) for seg in segments)


def parse_pattern(pattern: str) -> tuple[Segment, ...]:
    """Parse ``/guilds/:guild/settings`` into segments."""
    segments: list[Segment] = []
    for part in pattern.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":"):
            name = part[1:]
            if not name.isidentifier():
                msg = f"Invalid parameter segment {part!r} in route {pattern!r}"
                raise ConfigurationError(msg)
            segments.append(Segment(name, is_param=True))
        else:
            segments.append(Segment(part))
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """A scanned (method, pattern, builder) triple.

    ``builder`` is the route file's exported function; it is called once
    with the :class:`~perch.routing.context.RouteContext` to produce a
    :class:`RouteSpec`.
    """

    method: str
    pattern: tuple[Segment, ...]
    builder: Callable[..., Any]
    source: str = ""

    @property
    def path(self) -> str:
        return format_pattern(self.pattern)


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """What a builder returns: the handler plus its gate options.

    ``authorize`` implies ``authenticate``; the Authorizer needs a session.
    """

    handler: Callable[..., Any]
    authenticate: bool = False
    authorize: bool = False
    name: str | None = None

    @property
    def needs_session(self) -> bool:
        return self.authenticate or self.authorize

    @classmethod
    def coerce(cls, value: Any) -> "RouteSpec":
        """Accept a RouteSpec or a mapping with the same keys."""
        if isinstance(value, RouteSpec):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"handler", "authenticate", "authorize", "name"}
            if unknown:
                msg = f"Unknown route options: {', '.join(sorted(unknown))}"
                raise ConfigurationError(msg)
            if not callable(value.get("handler")):
                msg = "Route spec is missing a callable 'handler'"
                raise ConfigurationError(msg)
            return cls(
                handler=value["handler"],
                authenticate=bool(value.get("authenticate", False)),
                authorize=bool(value.get("authorize", False)),
                name=value.get("name"),
            )
        msg = f"Route builder must return a RouteSpec or mapping, got {type(value).__name__}"
        raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class Route:
    """A registrable route: one method, one pattern, one handler."""

    method: str
    pattern: tuple[Segment, ...]
    spec: RouteSpec
    source: str = ""

    @property
    def path(self) -> str:
        return format_pattern(self.pattern)

    @property
    def handler(self) -> Callable[..., Any]:
        return self.spec.handler

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(seg.value for seg in self.pattern if seg.is_param)

    @property
    def shape(self) -> tuple[str | None, ...]:
        """Pattern with parameter names erased; the uniqueness key."""
        return tuple(None if seg.is_param else seg.value for seg in self.pattern)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str] = field(default_factory=dict)
