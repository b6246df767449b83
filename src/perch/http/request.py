"""Immutable HTTP request.

Frozen metadata with async body access. Pipeline stages never mutate a
request; they return a new one via :func:`dataclasses.replace` (for example
to attach the verified session). The body cache is shared between those
copies, so the parsed JSON body a stage normalizes is the same object the
handler sees.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch._internal.asgi import Receive, Scope
from perch.errors import HTTPError
from perch.http.cookies import parse_cookies
from perch.http.headers import Headers, QueryParams

if TYPE_CHECKING:
    from perch.auth.session import Session

# Sentinel for "JSON body not parsed yet"
_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``route`` is the matched URL pattern (``None`` until the dispatcher has
    matched the request). ``session`` is set by the Authenticator.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: Mapping[str, str]
    client: tuple[str, int] | None
    cookies: Mapping[str, str]
    route: str | None = None
    session: Session | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for the raw and parsed body
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def is_json(self) -> bool:
        """True if the Content-Type declares a JSON body."""
        ct = (self.content_type or "").split(";", 1)[0].strip().lower()
        return ct == "application/json" or ct.endswith("+json")

    @property
    def client_ip(self) -> str:
        """Best-effort client address for logging."""
        forwarded = self.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",", 1)[0].strip()
        if self.client:
            return self.client[0]
        return "-"

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then the same
        bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes, None]:
        """Stream the request body in chunks."""
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Parse the body as JSON.

        Returns ``None`` for an empty body. The parsed value is cached, so
        in-place changes made by an earlier stage are visible to later ones.

        Raises:
            HTTPError: 400 if the body is not valid JSON.
        """
        cached = self._cache.get("_json", _UNSET)
        if cached is not _UNSET:
            return cached
        raw = await self.body()
        if not raw.strip():
            value = None
        else:
            try:
                value = json_module.loads(raw)
            except ValueError:
                raise HTTPError(400, "Body is not valid JSON") from None
        self._cache["_json"] = value
        return value

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            client=tuple(client) if client else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            _receive=receive,
        )
