"""``sprout routes`` — list registered routes.

Resolves an import string to a sprout App and prints every endpoint
with its verb, path, auth requirement and handler.
"""

import argparse
import sys

from sprout.cli._resolve import resolve_app
from sprout.routing.route import Route


def format_routes(routes: list[Route]) -> list[str]:
    """Render *routes* as aligned table lines, header first."""
    rows: list[tuple[str, str, str, str]] = []
    for route in sorted(routes, key=lambda r: (r.path, r.verb)):
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        rows.append((route.verb, route.path, "yes" if route.auth_required else "-", handler_name))

    verb_w = max([6, *(len(r[0]) for r in rows)])  # "METHOD" header
    path_w = max([4, *(len(r[1]) for r in rows)])  # "PATH" header
    fmt = f"{{:<{verb_w}}}  {{:<{path_w}}}  {{:<4}}  {{}}"

    lines = [fmt.format("METHOD", "PATH", "AUTH", "HANDLER")]
    sep_len = verb_w + path_w + 10 + max((len(r[3]) for r in rows), default=0)
    lines.append("-" * min(sep_len, 80))
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """List registered routes for a sprout app."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return

    for line in format_routes(routes):
        print(line)
