"""ASGI handler: runs one request through the pipeline.

The only component that touches raw ASGI directly. Builds a typed Request,
matches it against the frozen route table, runs the gates in order, calls
the handler and sends the Response back through ASGI ``send()``.

Fixed order for a matched route::

    BodyNormalizer -> Authenticator? -> Authorizer? -> handler

The first gate that answers ``Respond`` ends the request; later gates and
the handler never run. The response logger fires once per response on
every path, and every fault reaches the error logger.
"""

import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.auth.session import Session
from perch.errors import ConfigurationError, HTTPError, error_envelope
from perch.http.request import Request
from perch.http.response import Response, json_response
from perch.pipeline.observe import ErrorLogger, ResponseLogger
from perch.pipeline.outcome import Respond, Stage
from perch.routing.context import RouteContext
from perch.routing.route import Route
from perch.routing.table import RouteTable
from perch.server.negotiation import negotiate
from perch.server.sender import send_response


@dataclass(frozen=True, slots=True)
class Pipeline:
    """The gates and observers a dispatcher runs, built once at freeze.

    ``authenticate`` and ``authorize`` are ``None`` when the app has no
    token codec or guild directory; the app refuses to freeze if a route
    asks for a gate that is missing.
    """

    body: Stage
    authenticate: Stage | None
    authorize: Stage | None
    response_logger: ResponseLogger
    error_logger: ErrorLogger

    def gates_for(self, route: Route) -> tuple[Stage, ...]:
        """The ordered gates a request to *route* must pass.

        Raises:
            ConfigurationError: If the route needs a gate this pipeline lacks.
        """
        gates: list[Stage] = [self.body]
        if route.spec.needs_session:
            if self.authenticate is None:
                msg = f"{route.method} {route.path} requires authentication but no authenticator is configured"
                raise ConfigurationError(msg)
            gates.append(self.authenticate)
        if route.spec.authorize:
            if self.authorize is None:
                msg = f"{route.method} {route.path} requires authorization but no authorizer is configured"
                raise ConfigurationError(msg)
            gates.append(self.authorize)
        return tuple(gates)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: RouteTable,
    pipeline: Pipeline,
    context: RouteContext,
    debug: bool = False,
    clock: Callable[[], float] = time.perf_counter,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    started = clock()
    request = Request.from_asgi(scope, receive)
    request, response = await dispatch(request, table=table, pipeline=pipeline, context=context, debug=debug)
    elapsed_ms = (clock() - started) * 1000

    pipeline.response_logger(request, response.status, elapsed_ms)
    await send_response(response, send, method=request.method)


async def dispatch(
    request: Request,
    *,
    table: RouteTable,
    pipeline: Pipeline,
    context: RouteContext,
    debug: bool = False,
) -> tuple[Request, Response]:
    """Match and run *request*; return the last request seen and the response.

    The returned request carries the matched pattern (``route``) so the
    response logger can print it; it is the original request when nothing
    matched.
    """
    match = table.match(request.method, request.path)
    if match is None:
        return request, not_found_response(request)

    request = replace(request, path_params=match.path_params, route=match.route.path)

    try:
        for gate in pipeline.gates_for(match.route):
            outcome = await gate(request)
            if isinstance(outcome, Respond):
                if outcome.fault is not None:
                    pipeline.error_logger(request, outcome.fault)
                return request, outcome.response
            request = outcome.request

        result = await _invoke_handler(match.route, request, context)
        return request, negotiate(result)
    except HTTPError as exc:
        return request, json_response(exc.to_envelope(), exc.status)
    except Exception as exc:
        pipeline.error_logger(request, exc)
        return request, internal_error_response(exc, debug=debug)


def not_found_response(request: Request) -> Response:
    """404 envelope for a request no route matches."""
    message = f"Route {request.method}:{request.path} not found"
    return json_response(error_envelope(404, message), 404)


def internal_error_response(exc: BaseException, *, debug: bool = False) -> Response:
    """500 envelope for an unhandled fault; the message only in debug mode."""
    message = f"{type(exc).__name__}: {exc}" if debug else "An internal server error occurred."
    return json_response(error_envelope(500, message), 500)


async def _invoke_handler(route: Route, request: Request, context: RouteContext) -> Any:
    """Call the route handler with arguments resolved from its signature."""
    handler = route.handler
    kwargs = await _build_handler_kwargs(handler, request, context)
    return await invoke(handler, **kwargs)


async def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    context: RouteContext,
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from the request.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. ``session`` parameter (by name or ``Session`` annotation)
    3. ``ctx`` parameter (by name or ``RouteContext`` annotation)
    4. Path parameters (by name, with type conversion)
    5. ``body`` -- the parsed (and normalized) JSON body
    6. ``query`` -- the query string parameters
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name == "session" or param.annotation is Session:
            kwargs[name] = request.session
        elif name == "ctx" or param.annotation is RouteContext:
            kwargs[name] = context
        elif name in request.path_params:
            # Convert path param to annotated type if possible
            value = request.path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value
        elif name == "body":
            kwargs[name] = await request.json()
        elif name == "query":
            kwargs[name] = request.query

    return kwargs
