"""Frozen route table with trie-based path matching.

Routes are registered during startup and compiled into an immutable
lookup structure when the app freezes. After ``freeze()`` the table is
read-only, so concurrent lookups need no locking.
"""

from __future__ import annotations

import inspect
from collections.abc import Iterable
from typing import TYPE_CHECKING

from perch.errors import ConfigurationError, DuplicateRouteError, RouteLoadError
from perch.routing.route import Route, RouteDescriptor, RouteMatch, RouteSpec

if TYPE_CHECKING:
    from perch.routing.context import RouteContext


class _TrieNode:
    """A node in the route trie. Mutable during construction only."""

    __slots__ = ("children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        # Literal segment children: "guilds" -> node
        self.children: dict[str, _TrieNode] = {}
        # Parameter edge; names live on the Route, so one edge per level
        self.param_child: _TrieNode | None = None
        # Routes terminating here, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


class RouteTable:
    """Mapping of (method, URL pattern) to route.

    Usage::

        table = RouteTable()
        table.register(Route("GET", parse_pattern("/guilds/:guild"), spec))
        table.freeze()
        match = table.match("GET", "/guilds/42")

    Matching policy: literal segments match exactly, a parameter matches
    any single non-empty segment, segment counts must be equal. At each
    level the literal child is tried before the parameter child, and the
    search backtracks if the literal branch has no route for the method.
    """

    __slots__ = ("_count", "_frozen", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._frozen = False
        self._count = 0

    @classmethod
    def from_descriptors(
        cls,
        descriptors: Iterable[RouteDescriptor],
        context: RouteContext,
    ) -> RouteTable:
        """Build every descriptor with *context* and register the results.

        Builder failures are collected and raised together as a
        ``RouteLoadError``; a duplicate raises ``DuplicateRouteError``.
        The returned table is not frozen yet.
        """
        table = cls()
        failures: list[tuple[str, BaseException]] = []
        routes: list[Route] = []

        for descriptor in descriptors:
            try:
                if inspect.iscoroutinefunction(descriptor.builder):
                    msg = f"Route builder for {descriptor.method} must be a plain function, not async"
                    raise ConfigurationError(msg)
                spec = RouteSpec.coerce(descriptor.builder(context))
            except Exception as exc:
                failures.append((f"{descriptor.source} [{descriptor.method}]", exc))
                continue
            routes.append(
                Route(
                    method=descriptor.method,
                    pattern=descriptor.pattern,
                    spec=spec,
                    source=descriptor.source,
                )
            )

        if failures:
            raise RouteLoadError(failures)

        for route in routes:
            table.register(route)
        return table

    # -- Construction --

    def register(self, route: Route) -> None:
        """Insert *route*. Must be called before ``freeze()``.

        Raises:
            RuntimeError: If the table is frozen.
            DuplicateRouteError: If the method + normalized pattern exists.
        """
        if self._frozen:
            msg = "Cannot register routes after the table is frozen."
            raise RuntimeError(msg)

        node = self._root
        for seg in route.pattern:
            if seg.is_param:
                if node.param_child is None:
                    node.param_child = _TrieNode()
                node = node.param_child
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        existing = node.routes_by_method.get(route.method)
        if existing is not None:
            raise DuplicateRouteError(
                route.method,
                route.path,
                existing.source or existing.path,
                route.source or route.path,
            )
        node.routes_by_method[route.method] = route
        self._count += 1

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return self._count

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes, sorted by path then method."""
        result: list[Route] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            result.extend(node.routes_by_method.values())
            stack.extend(node.children.values())
            if node.param_child is not None:
                stack.append(node.param_child)
        return sorted(result, key=lambda r: (r.path, r.method))

    # -- Lookup --

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Match a request method and path.

        Returns a ``RouteMatch`` with path parameters bound by name, or
        ``None`` when nothing matches (including a method mismatch).
        """
        parts = [p for p in path.strip("/").split("/") if p]
        found = self._match_node(self._root, method.upper(), parts, 0, [])
        if found is None:
            return None
        route, values = found
        return RouteMatch(route=route, path_params=dict(zip(route.param_names, values, strict=True)))

    def _match_node(
        self,
        node: _TrieNode,
        method: str,
        parts: list[str],
        index: int,
        values: list[str],
    ) -> tuple[Route, list[str]] | None:
        """Recursively match path parts against the trie."""
        if index == len(parts):
            route = node.routes_by_method.get(method)
            return (route, values) if route is not None else None

        part = parts[index]

        # 1. Literal child first (exact match)
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, method, parts, index + 1, values)
            if result is not None:
                return result

        # 2. Parameter child
        if node.param_child is not None:
            return self._match_node(node.param_child, method, parts, index + 1, [*values, part])

        return None
