"""Tests for perch.server.negotiation: return value to Response."""

import pytest

from perch.http.response import JSON_CONTENT_TYPE, Redirect, Response
from perch.server.negotiation import negotiate


class TestNegotiate:
    def test_response_passthrough(self) -> None:
        response = Response("x", status=418)
        assert negotiate(response) is response

    def test_dict_is_json(self) -> None:
        response = negotiate({"a": 1})
        assert response.status == 200
        assert response.content_type == JSON_CONTENT_TYPE
        assert response.json() == {"a": 1}

    def test_list_is_json(self) -> None:
        assert negotiate([1, 2]).json() == [1, 2]

    def test_str(self) -> None:
        response = negotiate("hi")
        assert response.text == "hi"
        assert response.content_type.startswith("text/plain")

    def test_bytes(self) -> None:
        assert negotiate(b"\x00").content_type == "application/octet-stream"

    def test_none_is_204(self) -> None:
        response = negotiate(None)
        assert response.status == 204
        assert response.body == ""

    def test_redirect(self) -> None:
        response = negotiate(Redirect("/dashboard"))
        assert response.status == 302
        assert response.header("Location") == "/dashboard"

    def test_tuple_status(self) -> None:
        response = negotiate(({"id": 1}, 201))
        assert response.status == 201
        assert response.json() == {"id": 1}

    def test_tuple_status_and_headers(self) -> None:
        response = negotiate(("ok", 202, {"X-Job": "7"}))
        assert response.status == 202
        assert response.header("x-job") == "7"

    def test_unsupported(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert int"):
            negotiate(42)
