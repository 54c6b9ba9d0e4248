"""``sprout`` command line: serve an app or print its endpoint table."""

import argparse
import sys

_APP_HELP = "App target as module:attribute, e.g. sprout.garden.app:app"


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprout",
        description="Serve or inspect a sprout app.",
    )
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("run", help="Serve the app locally with pounce")
    serve.add_argument("app", help=_APP_HELP)
    serve.add_argument("--host", default=None, help="Interface to bind (config default)")
    serve.add_argument("--port", type=int, default=None, help="Port to bind (config default)")

    table = commands.add_parser("routes", help="Print every endpoint with its auth flag")
    table.add_argument("app", help=_APP_HELP)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _parser()
    args = parser.parse_args(argv)

    match args.command:
        case "run":
            from sprout.cli._run import run_server

            run_server(args)
        case "routes":
            from sprout.cli._routes import run_routes

            run_routes(args)
        case _:
            parser.print_help()
            sys.exit(0)
