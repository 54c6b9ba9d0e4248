"""Turning failures into responses.

An ``HTTPError`` becomes its status with the shared envelope body; any
other exception is logged and becomes a 500 of kind ``Unexpected``. A
handler registered with ``@app.error(...)`` for the exception class or
the status replaces the envelope::

    {"error": "ValidationFailed",
     "message": "Invalid request input",
     "details": [{"field": "lat", "reason": "Expected a number"}]}
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any, TypeAlias

from sprout.errors import HTTPError
from sprout.http.request import Request
from sprout.http.response import Response
from sprout.server.negotiation import negotiate

logger = logging.getLogger("sprout.server")

UNEXPECTED = "Unexpected"

ErrorHandlers: TypeAlias = dict[int | type, Callable[..., Any]]


def error_envelope(kind: str, message: str, details: tuple[Any, ...] = ()) -> dict[str, Any]:
    body: dict[str, Any] = {"error": kind, "message": message}
    if details:
        body["details"] = [_plain(d) for d in details]
    return body


def _registered(handlers: ErrorHandlers, exc: Exception, status: int) -> Callable[..., Any] | None:
    """Most specific class match first, then the bare status code."""
    for cls in type(exc).__mro__:
        if (found := handlers.get(cls)) is not None:
            return found
    return handlers.get(status)


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Call *handler* with as many of ``(request, exc)`` as it accepts."""
    arity = len(inspect.signature(handler).parameters)
    result = handler(*(request, exc)[: min(arity, 2)])
    if inspect.isawaitable(result):
        result = await result
    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
) -> Response:
    custom = _registered(error_handlers, exc, exc.status)
    if custom is None:
        body = error_envelope(exc.kind, exc.detail or f"Error {exc.status}", exc.details)
        return Response.json(body, status=exc.status).with_headers(exc.headers)
    response = await call_error_handler(custom, request, exc)
    # A plain return from the handler keeps the error's own status
    return response.with_status(exc.status) if response.status == 200 else response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    custom = error_handlers.get(500) or _registered(error_handlers, exc, 500)
    if custom is not None:
        return await call_error_handler(custom, request, exc)
    message = f"{type(exc).__name__}: {exc}" if debug else "Internal Server Error"
    return Response.json(error_envelope(UNEXPECTED, message), status=500)


def _plain(detail: Any) -> Any:
    return detail.to_dict() if hasattr(detail, "to_dict") else detail
