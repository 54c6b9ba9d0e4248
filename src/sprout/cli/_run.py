"""``sprout run`` — development server command."""

import argparse
import logging
import sys

from sprout.cli._resolve import resolve_app


def configure_logging(level: str) -> None:
    """Point the ``sprout.*`` loggers at stderr at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it with the pounce dev server.

    ``--host`` / ``--port`` override the app's ``AppConfig``.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(app.config.log_level)

    from sprout.server.dev import run_dev_server

    run_dev_server(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        reload=app.config.debug,
        reload_include=app.config.reload_include,
        reload_dirs=app.config.reload_dirs,
        app_path=args.app,
    )
