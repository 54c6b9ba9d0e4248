"""Sprout exception hierarchy.

Shared across Router, App, dispatcher, session context, and concepts so
every module raises and catches the same types.  Each ``HTTPError``
subclass carries a ``kind`` that becomes the ``error`` field of the JSON
error envelope.
"""

from dataclasses import dataclass
from typing import Any, ClassVar


class SproutError(Exception):
    """Base for all sprout-specific errors."""


class ConfigurationError(SproutError):
    """Raised when app or route configuration is invalid.

    Raised when the app compiles its routes, before serving.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(SproutError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, the dispatcher, handlers, or concepts.  The ASGI
    handler catches these and renders the uniform error envelope.
    """

    kind: ClassVar[str] = "HTTPError"

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    details: tuple[Any, ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched, or a concept could not find a record."""

    kind = "NotFound"

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: a route exists for the path but not for this verb.

    Includes an ``Allow`` header listing the valid verbs.
    """

    kind = "MethodNotAllowed"

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class ValidationFailed(HTTPError):  # noqa: N818
    """400: request input does not conform to the route's schema.

    ``details`` holds one ``FieldError`` per violation.
    """

    kind = "ValidationFailed"

    def __init__(self, errors: tuple[Any, ...], detail: str = "Invalid request input") -> None:
        super().__init__(status=400, detail=detail, details=tuple(errors))


class Unauthenticated(HTTPError):  # noqa: N818
    """401: the route requires a logged-in session."""

    kind = "Unauthenticated"

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status=401, detail=detail)


class NotLoggedIn(Unauthenticated):  # noqa: N818
    """The session carries no identity."""

    def __init__(self, detail: str = "Must be logged in!") -> None:
        super().__init__(detail)


class Forbidden(HTTPError):  # noqa: N818
    """403: authenticated, but not permitted to act on this record."""

    kind = "Forbidden"

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class Conflict(HTTPError):  # noqa: N818
    """409: the operation clashes with current state."""

    kind = "Conflict"

    def __init__(self, detail: str = "Conflict") -> None:
        super().__init__(status=409, detail=detail)


class AlreadyLoggedIn(Conflict):  # noqa: N818
    """The session already carries an identity."""

    def __init__(self, detail: str = "Must be logged out!") -> None:
        super().__init__(detail)


class UpstreamFailure(HTTPError):  # noqa: N818
    """502: a domain-module call failed for reasons opaque to the router."""

    kind = "UpstreamFailure"

    def __init__(self, detail: str = "Upstream operation failed") -> None:
        super().__init__(status=502, detail=detail)
