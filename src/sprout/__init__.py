"""Sprout — route synchronization for a recycling and gardening tracker.

A small async framework: a route registry with auth metadata, a
validating dispatcher, signed-cookie sessions, concurrent fan-out across
domain modules, and a client navigation guard that agrees with the
server about which pages need a login.

Basic usage::

    from sprout import App, Session
    from sprout.session import get_user

    app = App()

    @app.route("/session", auth_required=True)
    async def whoami(session: Session) -> dict:
        return {"user": get_user(session)}

    app.run()

The garden application lives in ``sprout.garden``.
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "FanOutPolicy",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "NavigationGuard",
    "Next",
    "NotFound",
    "Request",
    "Response",
    "Schema",
    "Session",
    "SideEffect",
    "SproutError",
    "fan_out",
    "get_request",
    "validate",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import sprout`` fast while providing a clean top-level API.
    """
    if name == "App":
        from sprout.app import App

        return App

    if name == "AppConfig":
        from sprout.config import AppConfig

        return AppConfig

    if name == "Request":
        from sprout.http.request import Request

        return Request

    if name == "Response":
        from sprout.http.response import Response

        return Response

    if name == "Session":
        from sprout.session import Session

        return Session

    if name in ("Schema", "validate"):
        from sprout import validation as _validation

        return getattr(_validation, name)

    if name in ("FanOutPolicy", "SideEffect", "fan_out"):
        from sprout import sync as _sync

        return getattr(_sync, name)

    if name == "NavigationGuard":
        from sprout.navigation import NavigationGuard

        return NavigationGuard

    if name in ("Middleware", "Next"):
        from sprout.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "get_request":
        from sprout.context import get_request

        return get_request

    if name in ("ConfigurationError", "HTTPError", "MethodNotAllowed", "NotFound", "SproutError"):
        from sprout import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
