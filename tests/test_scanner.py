"""Tests for perch.routing.scanner: filesystem route discovery."""

from pathlib import Path

import pytest

from perch.errors import ConfigurationError, RouteLoadError
from perch.routing.route import format_pattern
from perch.routing.scanner import derive_pattern, scan_routes


def _path(relative: str) -> str:
    return format_pattern(derive_pattern(relative))


class TestDerivePattern:
    def test_root_index(self) -> None:
        assert _path("index.py") == "/"

    def test_plain_file(self) -> None:
        assert _path("status.py") == "/status"

    def test_nested_index(self) -> None:
        assert _path("guilds/[guild]/index.py") == "/guilds/:guild"

    def test_param_segments(self) -> None:
        assert _path("guilds/[guild]/tickets/[ticket].py") == "/guilds/:guild/tickets/:ticket"

    def test_backslash_separators(self) -> None:
        assert _path("guilds\\[guild]\\settings.py") == "/guilds/:guild/settings"

    def test_index_only_dropped_at_the_end(self) -> None:
        assert _path("index/users.py") == "/index/users"

    def test_partial_brackets_stay_literal(self) -> None:
        assert _path("v[1]/ping.py") == "/v[1]/ping"

    def test_param_flags(self) -> None:
        segments = derive_pattern("guilds/[guild]/settings.py")
        assert [s.is_param for s in segments] == [False, True, False]
        assert segments[1].value == "guild"


class TestScanRoutes:
    def test_methods_become_descriptors(self, write_route) -> None:
        root = write_route(
            "guilds/[guild]/settings.py",
            """
            def get(ctx):
                return {"handler": lambda: {}}

            def post(ctx):
                return {"handler": lambda: {}}
            """,
        )
        descriptors = scan_routes(root)
        assert [(d.method, d.path) for d in descriptors] == [
            ("GET", "/guilds/:guild/settings"),
            ("POST", "/guilds/:guild/settings"),
        ]
        assert descriptors[0].source == "guilds/[guild]/settings.py"

    def test_non_method_exports_ignored(self, write_route) -> None:
        root = write_route(
            "ping.py",
            """
            TIMEOUT = 5

            def helper():
                return 1

            def get(ctx):
                return {"handler": helper}
            """,
        )
        assert [d.method for d in scan_routes(root)] == ["GET"]

    def test_imported_method_names_ignored(self, write_route) -> None:
        root = write_route(
            "proxy.py",
            """
            from json import dumps as post
            from operator import attrgetter as get

            def put(ctx):
                return {"handler": lambda: post({})}
            """,
        )
        assert [d.method for d in scan_routes(root)] == ["PUT"]

    def test_dunder_all_selects_exports(self, write_route) -> None:
        root = write_route(
            "items.py",
            """
            from operator import attrgetter as get

            __all__ = ["get"]

            def delete(ctx):
                return {"handler": lambda: None}
            """,
        )
        assert [d.method for d in scan_routes(root)] == ["GET"]

    def test_method_names_are_case_insensitive(self, write_route) -> None:
        root = write_route(
            "ping.py",
            """
            def DELETE(ctx):
                return {"handler": lambda: None}
            """,
        )
        assert [d.method for d in scan_routes(root)] == ["DELETE"]

    def test_deterministic_order(self, write_route) -> None:
        write_route("b.py", "def get(ctx):\n    return {'handler': lambda: 'b'}\n")
        write_route("a/index.py", "def get(ctx):\n    return {'handler': lambda: 'a'}\n")
        root = write_route("index.py", "def get(ctx):\n    return {'handler': lambda: '/'}\n")
        assert [d.path for d in scan_routes(root)] == ["/b", "/", "/a"]

    def test_hidden_and_private_entries_skipped(self, write_route) -> None:
        write_route("_shared.py", "raise RuntimeError('not a route')\n")
        write_route(".hidden/x.py", "raise RuntimeError('not a route')\n")
        write_route("notes.txt", "not python")
        root = write_route("ok.py", "def get(ctx):\n    return {'handler': lambda: 'ok'}\n")
        assert [d.path for d in scan_routes(root)] == ["/ok"]

    def test_empty_file_yields_nothing(self, write_route) -> None:
        root = write_route("empty.py", "")
        assert scan_routes(root) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Routes directory not found"):
            scan_routes(tmp_path / "nope")

    def test_failures_are_aggregated(self, write_route) -> None:
        write_route("broken.py", "def get(ctx:\n")
        write_route("boom.py", "raise RuntimeError('kaboom')\n")
        root = write_route("ok.py", "def get(ctx):\n    return {'handler': lambda: 'ok'}\n")

        with pytest.raises(RouteLoadError) as exc_info:
            scan_routes(root)

        failed = [path for path, _ in exc_info.value.failures]
        assert failed == ["boom.py", "broken.py"]
        message = str(exc_info.value)
        assert "Failed to load 2 route files" in message
        assert "kaboom" in message

    def test_non_callable_method_export(self, write_route) -> None:
        root = write_route("bad.py", "get = 'not a function'\n")
        with pytest.raises(RouteLoadError) as exc_info:
            scan_routes(root)
        assert isinstance(exc_info.value.failures[0][1], ConfigurationError)

    def test_route_load_error_is_configuration_error(self, write_route) -> None:
        root = write_route("boom.py", "raise RuntimeError('kaboom')\n")
        with pytest.raises(ConfigurationError):
            scan_routes(root)
