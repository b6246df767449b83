"""Pipeline stages: the ordered gates every matched request passes.

A stage is any callable matching::

    async def stage(request: Request) -> Outcome: ...

and returns either ``Continue(request)`` (possibly a new request, e.g. with
a session attached) or ``Respond(response)`` to short-circuit.

Built-in stages, in dispatch order:
    BodyNormalizer -- trims string fields of JSON object bodies
    Authenticator -- verifies the session cookie (opt-in per route)
    Authorizer -- checks guild management rights (opt-in per route)
    ResponseLogger -- one colored line per response
    ErrorLogger -- records unhandled and converted faults
"""

from perch.pipeline.authn import Authenticator
from perch.pipeline.authz import AuthorizationDecision, Authorizer
from perch.pipeline.body import BodyNormalizer
from perch.pipeline.observe import ErrorLogger, ResponseLogger
from perch.pipeline.outcome import Continue, Outcome, Respond, Stage, fault_response

__all__ = [
    "AuthorizationDecision",
    "Authenticator",
    "Authorizer",
    "BodyNormalizer",
    "Continue",
    "ErrorLogger",
    "Outcome",
    "Respond",
    "ResponseLogger",
    "Stage",
    "fault_response",
]
