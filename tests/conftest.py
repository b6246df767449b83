"""Shared fixtures: request builder, route trees, token codec, guilds."""

import json as json_module
import textwrap
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from perch.auth.tokens import TokenCodec
from perch.guilds import StaticGuildDirectory
from perch.http.request import Request

SECRET = "perch-test-signing-key-0123456789abcdef"


def build_request(
    method: str = "GET",
    path: str = "/",
    *,
    body: bytes = b"",
    json: Any = None,
    headers: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("127.0.0.1", 5000),
) -> Request:
    """Build a Request the way the ASGI handler does."""
    raw_headers: list[tuple[bytes, bytes]] = []
    if json is not None:
        body = json_module.dumps(json).encode("utf-8")
        raw_headers.append((b"content-type", b"application/json"))
    if cookies:
        cookie = "; ".join(f"{k}={v}" for k, v in cookies.items())
        raw_headers.append((b"cookie", cookie.encode("latin-1")))
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    path_part, _, query = path.partition("?")
    scope = {
        "type": "http",
        "method": method,
        "path": path_part,
        "query_string": query.encode("latin-1"),
        "headers": raw_headers,
        "client": client,
    }
    return Request.from_asgi(scope, receive)


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET)


@pytest.fixture
def guilds() -> StaticGuildDirectory:
    """Guild 123: user 42 manages it, user 7 is a plain member."""
    return StaticGuildDirectory.build(
        {"123": {"42": ["MANAGE_GUILD"], "7": ["SEND_MESSAGES"]}}
    )


@pytest.fixture
def routes_dir(tmp_path: Path) -> Path:
    root = tmp_path / "routes"
    root.mkdir()
    return root


@pytest.fixture
def write_route(routes_dir: Path) -> Callable[[str, str], Path]:
    """Write a route file under the routes root; returns the root."""

    def write(relative: str, source: str) -> Path:
        file = routes_dir / relative
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(textwrap.dedent(source))
        return routes_dir

    return write


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request
