"""Invoke helpers: call sync or async handlers uniformly.

Route handlers can be ``def`` or ``async def``; route-file builders
are always plain ``def`` and run once at startup.
The sync/async check lives here and nowhere else.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
