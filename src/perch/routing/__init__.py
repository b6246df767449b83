"""Routing: file-derived route descriptors and a frozen route table.

Descriptors are scanned once at startup, built into routes, and compiled
into an immutable lookup structure when the app freezes.
"""

from perch.routing.context import RouteContext
from perch.routing.route import Route, RouteDescriptor, RouteMatch, RouteSpec, Segment
from perch.routing.scanner import derive_pattern, scan_routes
from perch.routing.table import RouteTable

__all__ = [
    "Route",
    "RouteContext",
    "RouteDescriptor",
    "RouteMatch",
    "RouteSpec",
    "RouteTable",
    "Segment",
    "derive_pattern",
    "scan_routes",
]
