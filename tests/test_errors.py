"""Tests for perch.errors: envelopes and startup fault types."""

from perch.errors import (
    DuplicateRouteError,
    Forbidden,
    HTTPError,
    NotFound,
    RouteLoadError,
    Unauthorized,
    error_envelope,
    reason_phrase,
)


class TestEnvelope:
    def test_shape(self) -> None:
        assert error_envelope(404, "gone") == {
            "error": "Not Found",
            "message": "gone",
            "statusCode": 404,
        }

    def test_custom_error_and_extra(self) -> None:
        envelope = error_envelope(401, "nope", error="Unauthorised", code="token_missing")
        assert envelope["error"] == "Unauthorised"
        assert envelope["code"] == "token_missing"

    def test_reason_fallbacks(self) -> None:
        assert reason_phrase(599) == "Internal Server Error"
        assert reason_phrase(418) == "Error"


class TestHTTPError:
    def test_envelope_uses_detail(self) -> None:
        assert HTTPError(409, "taken").to_envelope() == {
            "error": "Conflict",
            "message": "taken",
            "statusCode": 409,
        }

    def test_envelope_without_detail(self) -> None:
        assert HTTPError(503).to_envelope()["message"] == "Service Unavailable"

    def test_subclasses(self) -> None:
        assert NotFound().to_envelope()["message"] == "The requested resource could not be found."
        assert Unauthorized().to_envelope() == {
            "error": "Unauthorised",
            "message": "You are not authenticated.",
            "statusCode": 401,
        }
        assert Forbidden().status == 403


class TestStartupFaults:
    def test_route_load_error_lists_every_file(self) -> None:
        exc = RouteLoadError([("a.py", ImportError("x")), ("b.py", SyntaxError("y"))])
        message = str(exc)
        assert message.startswith("Failed to load 2 route files:")
        assert "a.py: ImportError: x" in message
        assert "b.py: SyntaxError: y" in message

    def test_single_file_wording(self) -> None:
        assert str(RouteLoadError([("a.py", ValueError("x"))])).startswith("Failed to load 1 route file:")

    def test_duplicate_message(self) -> None:
        exc = DuplicateRouteError("GET", "/x", "a.py", "b.py")
        assert str(exc) == "Duplicate route GET /x: defined by a.py and b.py"
