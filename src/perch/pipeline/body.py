"""Body normalizer: trims whitespace around string fields."""

from perch.errors import HTTPError
from perch.http.request import Request
from perch.pipeline.outcome import Continue


class BodyNormalizer:
    """Strip leading and trailing whitespace from JSON object string fields.

    The parsed body is edited in place, so the handler sees
    ``{"name": "Alice"}`` for a request that sent ``{"name": "  Alice  "}``.
    Arrays, primitives, empty and non-JSON bodies pass through untouched,
    and an undecodable body is left for the handler to reject.
    """

    __slots__ = ()

    async def __call__(self, request: Request) -> Continue:
        if request.method in ("GET", "HEAD") or not request.is_json:
            return Continue(request)

        try:
            body = await request.json()
        except HTTPError:
            return Continue(request)

        if isinstance(body, dict):
            for key, value in body.items():
                if isinstance(value, str):
                    body[key] = value.strip()

        return Continue(request)
