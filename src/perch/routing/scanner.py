"""Filesystem route discovery for the routes/ directory.

Walks the handler tree and turns every ``.py`` file into route
descriptors:

- the file path relative to the root becomes the URL pattern
  (``guilds/[guild]/settings.py`` -> ``/guilds/:guild/settings``);
- a trailing ``index`` segment maps to the directory URL;
- every module-level function named after an HTTP method (``get``,
  ``post``, ...) becomes one descriptor for that method.

Entries starting with ``.`` (hidden) or ``_`` (private helpers,
``__init__.py``, ``__pycache__``) are skipped.

Scanning is all-or-nothing: every file that fails to load is collected
and reported in a single :class:`~perch.errors.RouteLoadError`.
"""

from __future__ import annotations

import importlib.util
import logging
import re
from collections.abc import Iterator
from pathlib import Path, PurePath
from types import ModuleType

from perch.errors import ConfigurationError, RouteLoadError
from perch.routing.route import HTTP_METHODS, RouteDescriptor, Segment

logger = logging.getLogger("perch.routing")

# Regex matching [param] path segments
_PARAM_SEGMENT_RE = re.compile(r"^\[(\w+)\]$")

_ROUTE_SUFFIX = ".py"


def derive_pattern(relative_path: str | PurePath) -> tuple[Segment, ...]:
    """Derive URL pattern segments from a route file path.

    Examples::

        "index.py"                 -> ()                       # "/"
        "guilds/[guild]/index.py"  -> (guilds, :guild)
        "guilds\\[guild]\\bar.py"  -> (guilds, :guild, bar)
    """
    text = str(relative_path).replace("\\", "/")
    if text.endswith(_ROUTE_SUFFIX):
        text = text[: -len(_ROUTE_SUFFIX)]

    parts = [part for part in text.split("/") if part]
    if parts and parts[-1] == "index":
        parts.pop()

    segments: list[Segment] = []
    for part in parts:
        param = _PARAM_SEGMENT_RE.match(part)
        if param:
            segments.append(Segment(param.group(1), is_param=True))
        else:
            segments.append(Segment(part))
    return tuple(segments)


def scan_routes(routes_dir: str | Path) -> list[RouteDescriptor]:
    """Walk a routes directory and discover all route descriptors.

    Args:
        routes_dir: Path to the handler root.

    Returns:
        Descriptors in deterministic order (lexicographic by path, files
        before sub-directories, methods sorted within a file).

    Raises:
        ConfigurationError: If *routes_dir* is not a directory.
        RouteLoadError: If any route file fails to load.
    """
    root = Path(routes_dir).resolve()
    if not root.is_dir():
        msg = f"Routes directory not found: {root}"
        raise ConfigurationError(msg)

    descriptors: list[RouteDescriptor] = []
    failures: list[tuple[str, BaseException]] = []

    for file in _iter_route_files(root):
        relative = file.relative_to(root).as_posix()
        try:
            module = _load_module(file, relative)
            descriptors.extend(_descriptors_for(module, relative))
        except Exception as exc:
            failures.append((relative, exc))

    if failures:
        raise RouteLoadError(failures)

    logger.debug("Scanned %d route(s) from %s", len(descriptors), root)
    return descriptors


def _is_hidden(path: Path) -> bool:
    return path.name.startswith((".", "_"))


def _iter_route_files(directory: Path) -> Iterator[Path]:
    """Yield route files depth-first: files first, then sub-directories."""
    entries = sorted(item for item in directory.iterdir() if not _is_hidden(item))
    for item in entries:
        if item.is_file() and item.suffix == _ROUTE_SUFFIX:
            yield item
    for item in entries:
        if item.is_dir():
            yield from _iter_route_files(item)


def _load_module(file: Path, relative: str) -> ModuleType:
    """Execute a route file as an anonymous module."""
    module_name = "_perch_route_" + re.sub(r"\W", "_", relative)
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        msg = f"Cannot create an import spec for {file}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _descriptors_for(module: ModuleType, relative: str) -> list[RouteDescriptor]:
    """Collect one descriptor per exported HTTP-method function.

    Exports are the names in ``__all__`` when the file declares it, and
    otherwise the functions defined in the file itself, so an imported
    ``get`` (``from httpx import get``) is not mistaken for a route.
    """
    pattern = derive_pattern(relative)
    found: dict[str, RouteDescriptor] = {}
    exported = getattr(module, "__all__", None)

    for name, value in vars(module).items():
        method = name.upper()
        if method not in HTTP_METHODS:
            continue
        if exported is not None and name not in exported:
            continue
        if not callable(value):
            msg = f"Export {name!r} must be a function taking the route context"
            raise ConfigurationError(msg)
        if exported is None and getattr(value, "__module__", None) != module.__name__:
            logger.debug("Skipping imported %r in route file %s", name, relative)
            continue
        if method in found:
            msg = f"Method {method} exported more than once"
            raise ConfigurationError(msg)
        found[method] = RouteDescriptor(
            method=method,
            pattern=pattern,
            builder=value,
            source=relative,
        )

    if not found:
        logger.debug("Route file %s exports no HTTP methods", relative)
    return [found[method] for method in sorted(found)]
