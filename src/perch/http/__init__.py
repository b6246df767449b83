"""HTTP primitives: immutable request, chainable response, headers, cookies."""

from perch.http.cookies import SetCookie, parse_cookies
from perch.http.headers import Headers, QueryParams
from perch.http.request import Request
from perch.http.response import Redirect, Response, json_response

__all__ = [
    "Headers",
    "QueryParams",
    "Redirect",
    "Request",
    "Response",
    "SetCookie",
    "json_response",
    "parse_cookies",
]
