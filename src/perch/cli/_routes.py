"""``perch routes``: list the routes a directory defines.

Scans the directory the same way the app does at startup and prints
METHOD, PATH and SOURCE for every export. Builders are not called.
"""

import argparse
import sys

from perch.errors import ConfigurationError
from perch.routing.scanner import scan_routes


def run_routes(args: argparse.Namespace) -> None:
    """Print the scanned route table for ``args.directory``."""
    try:
        descriptors = scan_routes(args.directory)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not descriptors:
        print("No routes found.")
        return

    rows = sorted(((d.method, d.path, d.source) for d in descriptors), key=lambda r: (r[1], r[0]))

    # Column widths
    max_method = max(6, *(len(r[0]) for r in rows))  # "METHOD" header
    max_path = max(4, *(len(r[1]) for r in rows))  # "PATH" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "SOURCE"))
    sep_len = max_method + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for method, path, source in rows:
        print(fmt.format(method, path, source))
