"""Request middleware.

Sessions ride in a signed cookie (``SessionMiddleware``); anything else an
app needs is a plain ``async (request, next) -> Response`` callable.
"""

from sprout.middleware.protocol import Middleware, Next
from sprout.middleware.sessions import SessionConfig, SessionMiddleware, get_session

__all__ = [
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "get_session",
]
