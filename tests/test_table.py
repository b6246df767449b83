"""Tests for perch.routing.table: the frozen route table."""

import pytest

from perch.config import AppConfig
from perch.errors import ConfigurationError, DuplicateRouteError, RouteLoadError
from perch.routing.context import RouteContext
from perch.routing.route import Route, RouteDescriptor, RouteSpec, parse_pattern
from perch.routing.table import RouteTable


def _handler() -> str:
    return "ok"


def _route(method: str, path: str, source: str = "") -> Route:
    return Route(method, parse_pattern(path), RouteSpec(_handler), source)


def _table(*routes: Route) -> RouteTable:
    table = RouteTable()
    for route in routes:
        table.register(route)
    table.freeze()
    return table


class TestRouteTableMatch:
    def test_root(self) -> None:
        table = _table(_route("GET", "/"))
        match = table.match("GET", "/")
        assert match is not None
        assert match.route.path == "/"
        assert match.path_params == {}

    def test_binds_params_by_name(self) -> None:
        table = _table(_route("POST", "/guilds/:guild/settings"))
        match = table.match("POST", "/guilds/123/settings")
        assert match is not None
        assert match.path_params == {"guild": "123"}

    def test_literal_beats_param(self) -> None:
        table = _table(_route("GET", "/guilds/:guild"), _route("GET", "/guilds/mine"))
        match = table.match("GET", "/guilds/mine")
        assert match is not None
        assert match.route.path == "/guilds/mine"

    def test_backtracks_to_param(self) -> None:
        table = _table(
            _route("GET", "/guilds/mine/roles"),
            _route("GET", "/guilds/:guild/settings"),
        )
        match = table.match("GET", "/guilds/mine/settings")
        assert match is not None
        assert match.path_params == {"guild": "mine"}

    def test_method_aware_backtracking(self) -> None:
        table = _table(_route("GET", "/guilds/mine"), _route("DELETE", "/guilds/:guild"))
        match = table.match("DELETE", "/guilds/mine")
        assert match is not None
        assert match.route.path == "/guilds/:guild"

    def test_method_mismatch_is_no_match(self) -> None:
        table = _table(_route("GET", "/status"))
        assert table.match("POST", "/status") is None

    def test_segment_count_must_match(self) -> None:
        table = _table(_route("GET", "/guilds/:guild"))
        assert table.match("GET", "/guilds") is None
        assert table.match("GET", "/guilds/1/extra") is None

    def test_method_is_case_insensitive(self) -> None:
        table = _table(_route("GET", "/status"))
        assert table.match("get", "/status") is not None

    def test_params_named_per_route(self) -> None:
        table = _table(_route("GET", "/guilds/:guild"), _route("PUT", "/guilds/:id"))
        get = table.match("GET", "/guilds/9")
        put = table.match("PUT", "/guilds/9")
        assert get is not None and get.path_params == {"guild": "9"}
        assert put is not None and put.path_params == {"id": "9"}


class TestRouteTableRegistration:
    def test_duplicate_method_and_pattern(self) -> None:
        table = RouteTable()
        table.register(_route("GET", "/status", "a.py"))
        with pytest.raises(DuplicateRouteError, match="Duplicate route GET /status"):
            table.register(_route("GET", "/status", "b.py"))

    def test_param_names_do_not_disambiguate(self) -> None:
        table = RouteTable()
        table.register(_route("GET", "/guilds/:guild"))
        with pytest.raises(DuplicateRouteError):
            table.register(_route("GET", "/guilds/:id"))

    def test_same_pattern_different_methods(self) -> None:
        table = _table(_route("GET", "/status"), _route("POST", "/status"))
        assert len(table) == 2

    def test_register_after_freeze(self) -> None:
        table = _table()
        with pytest.raises(RuntimeError, match="frozen"):
            table.register(_route("GET", "/"))

    def test_routes_sorted(self) -> None:
        table = _table(_route("POST", "/b"), _route("GET", "/b"), _route("GET", "/a"))
        assert [(r.method, r.path) for r in table.routes] == [
            ("GET", "/a"),
            ("GET", "/b"),
            ("POST", "/b"),
        ]


class TestFromDescriptors:
    def _descriptor(self, path: str, builder, method: str = "GET") -> RouteDescriptor:
        return RouteDescriptor(method, parse_pattern(path), builder, source=path)

    def test_builders_receive_context(self) -> None:
        seen = []

        def builder(ctx):
            seen.append(ctx)
            return RouteSpec(_handler, authenticate=True)

        context = RouteContext(config=AppConfig())
        table = RouteTable.from_descriptors([self._descriptor("/me", builder)], context)
        assert seen == [context]
        match = table.match("GET", "/me")
        assert match is not None
        assert match.route.spec.authenticate is True

    def test_builder_failures_aggregated(self) -> None:
        def broken(ctx):
            raise ValueError("no handler today")

        def bad_shape(ctx):
            return 42

        descriptors = [self._descriptor("/a", broken), self._descriptor("/b", bad_shape)]
        with pytest.raises(RouteLoadError) as exc_info:
            RouteTable.from_descriptors(descriptors, RouteContext(config=AppConfig()))
        assert len(exc_info.value.failures) == 2
        assert "no handler today" in str(exc_info.value)

    def test_async_builder_rejected(self) -> None:
        async def builder(ctx):
            return {"handler": _handler}

        with pytest.raises(RouteLoadError) as exc_info:
            RouteTable.from_descriptors([self._descriptor("/a", builder)], RouteContext(config=AppConfig()))
        [(_, exc)] = exc_info.value.failures
        assert isinstance(exc, ConfigurationError)
        assert "not async" in str(exc)

    def test_duplicates_across_files(self) -> None:
        def builder(ctx):
            return {"handler": _handler}

        descriptors = [
            self._descriptor("/guilds/:guild", builder),
            self._descriptor("/guilds/:id", builder),
        ]
        with pytest.raises(DuplicateRouteError):
            RouteTable.from_descriptors(descriptors, RouteContext(config=AppConfig()))
