"""Tests for perch.server.dispatch: gate selection per route."""

import pytest

from perch.errors import ConfigurationError
from perch.pipeline.body import BodyNormalizer
from perch.pipeline.observe import ErrorLogger, ResponseLogger
from perch.pipeline.outcome import Continue
from perch.routing.route import Route, RouteSpec, parse_pattern
from perch.server.dispatch import Pipeline


async def _pass(request):
    return Continue(request)


async def _check(request):
    return Continue(request)


def _route(**flags: bool) -> Route:
    return Route("GET", parse_pattern("/guilds/:guild"), RouteSpec(handler=lambda: None, **flags))


def _pipeline(*, authenticate=_pass, authorize=_check) -> Pipeline:
    return Pipeline(
        body=BodyNormalizer(),
        authenticate=authenticate,
        authorize=authorize,
        response_logger=ResponseLogger(color=False),
        error_logger=ErrorLogger(),
    )


class TestGatesFor:
    def test_ungated_route_runs_body_only(self) -> None:
        pipeline = _pipeline()
        assert pipeline.gates_for(_route()) == (pipeline.body,)

    def test_authenticated_route(self) -> None:
        pipeline = _pipeline()
        assert pipeline.gates_for(_route(authenticate=True)) == (pipeline.body, _pass)

    def test_authorize_implies_authenticate(self) -> None:
        pipeline = _pipeline()
        assert pipeline.gates_for(_route(authorize=True)) == (pipeline.body, _pass, _check)

    def test_missing_authenticator_fails_closed(self) -> None:
        with pytest.raises(ConfigurationError, match="requires authentication"):
            _pipeline(authenticate=None).gates_for(_route(authenticate=True))

    def test_missing_authorizer_fails_closed(self) -> None:
        with pytest.raises(ConfigurationError, match="requires authorization"):
            _pipeline(authorize=None).gates_for(_route(authorize=True))
