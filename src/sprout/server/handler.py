"""The request pipeline, from ASGI scope to ASGI messages.

Nothing else in sprout sees raw ASGI. A request is turned into a
``Request``, passed through the middleware chain into ``_dispatch`` and
the resulting ``Response`` is written back with ``send``.

Inside ``_dispatch`` a request advances through::

    RECEIVED -> MATCHED -> AUTHORIZED -> VALIDATED -> DISPATCHED -> COMPLETED

and a rejection is logged with the last stage it reached. Authorization
comes before the body is read: an anonymous caller of a protected
endpoint never gets its input parsed.
"""

import inspect
import json
import logging
from collections.abc import Callable
from contextvars import Token
from dataclasses import replace
from enum import StrEnum
from typing import Any

from sprout._internal.asgi import Receive, Scope, Send
from sprout._internal.invoke import invoke
from sprout.config import AppConfig
from sprout.context import request_var
from sprout.errors import HTTPError, Unauthenticated, ValidationFailed
from sprout.http.request import Request
from sprout.http.response import Response
from sprout.middleware.protocol import Next
from sprout.middleware.sessions import bind_session, get_session, reset_session
from sprout.routing.route import Route
from sprout.routing.router import Router
from sprout.security.audit import emit_security_event
from sprout.server.errors import handle_http_error, handle_internal_error
from sprout.server.negotiation import negotiate
from sprout.server.sender import send_response
from sprout.session import Session, is_logged_out
from sprout.validation import FieldError, Schema, coerce_for, field_name, validate

logger = logging.getLogger("sprout.server")

# Parameters the dispatcher fills itself; never read from request input
INJECTED_NAMES = frozenset({"request", "session"})
INJECTED_TYPES = frozenset({Request, Session})


class Stage(StrEnum):
    RECEIVED = "received"
    MATCHED = "matched"
    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    config: AppConfig,
    providers: dict[type, Callable[..., Any]] | None = None,
) -> None:
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    request_token: Token[Request] = request_var.set(request)
    # Start unbound so two requests on one task never share a session
    session_token = bind_session(None)

    async def endpoint(req: Request) -> Response:
        return await _dispatch(
            req,
            router=router,
            error_handlers=error_handlers,
            config=config,
            providers=providers,
        )

    try:
        response = await _chain(middleware, endpoint)(request)
    except HTTPError as exc:
        # Only middleware gets here; _dispatch renders its own
        response = await handle_http_error(exc, request, error_handlers)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, config.debug)
    finally:
        reset_session(session_token)
        request_var.reset(request_token)

    await send_response(response, send)


def _chain(middleware: tuple[Callable[..., Any], ...], endpoint: Next) -> Next:
    """Nest *endpoint* inside *middleware*; the first one registered runs outermost."""
    inner = endpoint
    for layer in reversed(middleware):

        async def step(req: Request, _layer: Any = layer, _inner: Next = inner) -> Response:
            return await _layer(req, _inner)

        inner = step
    return inner


async def _dispatch(
    request: Request,
    *,
    router: Router,
    error_handlers: dict[int | type, Callable[..., Any]],
    config: AppConfig,
    providers: dict[type, Callable[..., Any]] | None,
) -> Response:
    """Match, authorize, validate, invoke.

    ``HTTPError`` is rendered here, inside the middleware chain, so the
    session middleware still signs its cookie onto error responses.
    """
    stage = Stage.RECEIVED
    try:
        match = router.resolve(request.method, request.path)
        stage = Stage.MATCHED
        route = match.route

        # replace() shares _cache, so a body middleware already read survives
        request = replace(request, path_params=match.path_params)
        request_var.set(request)

        session = get_session()
        if route.auth_required and is_logged_out(session):
            emit_security_event("auth.rejected", request=request)
            raise Unauthenticated()
        stage = Stage.AUTHORIZED

        data: dict[str, Any] = {}
        if _takes_input(route.schema, config.strict_schemas):
            raw = await collect_input(request, config.max_content_length)
            result = validate(route.schema, raw, strict=config.strict_schemas)
            if not result:
                raise ValidationFailed(result.errors)
            data = result.data
        stage = Stage.VALIDATED

        kwargs = build_handler_kwargs(route, request, session, data, providers)
        stage = Stage.DISPATCHED
        value = await invoke(route.handler, **kwargs)

        response = negotiate(value, status=route.status)
        stage = Stage.COMPLETED
        return response

    except HTTPError as exc:
        logger.debug(
            "%s %s rejected at %s: %d %s",
            request.method,
            request.path,
            stage,
            exc.status,
            exc.detail,
        )
        return await handle_http_error(exc, request, error_handlers)


def _takes_input(schema: Schema | None, strict_default: bool) -> bool:
    """Whether the request input must be read at all.

    A lenient schema with no fields ignores whatever was sent, so a stray
    body on ``GET /users`` or ``POST /logout`` is never parsed.
    """
    if schema is None:
        return False
    strict = schema.strict if schema.strict is not None else strict_default
    return len(schema) > 0 or strict


async def collect_input(request: Request, max_content_length: int) -> dict[str, Any]:
    """Merge body, query, and path parameters into one candidate mapping.

    Later sources win: body < query < path.
    """
    merged = await read_body(request, max_content_length)
    merged.update(request.query.to_input())
    merged.update(request.path_params)
    return merged


async def read_body(request: Request, max_content_length: int) -> dict[str, Any]:
    """Decode a JSON object (or url-encoded form) body; empty means ``{}``."""
    declared = request.content_length
    if declared is not None and declared > max_content_length:
        raise ValidationFailed((FieldError("", "Request body too large"),))

    raw = await request.body()
    if len(raw) > max_content_length:
        raise ValidationFailed((FieldError("", "Request body too large"),))
    if not raw.strip():
        return {}
    if request.is_form:
        return await request.form()

    try:
        payload = json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        raise ValidationFailed((FieldError("", "Malformed JSON body"),)) from None
    if not isinstance(payload, dict):
        raise ValidationFailed((FieldError("", "Expected a JSON object"),))
    return payload


def _reject_constant(token: str) -> Any:
    """Bodies are strict JSON: bare NaN and Infinity count as malformed."""
    msg = f"Non-standard JSON constant {token}"
    raise ValueError(msg)


def build_handler_kwargs(
    route: Route,
    request: Request,
    session: Session,
    data: dict[str, Any],
    providers: dict[type, Callable[..., Any]] | None = None,
) -> dict[str, Any]:
    """Fill the handler's parameters, first source that applies wins.

    The request and session are matched by name or annotation. Then come
    ``app.provide()`` factories keyed by annotation, then validated input
    by field name (``from_`` reads the ``from`` field). A parameter none
    of them supply falls back to its default.
    """
    providers = providers or {}
    bound: dict[str, Any] = {}
    for arg, param in inspect.signature(route.handler, eval_str=True).parameters.items():
        hint = param.annotation
        if arg == "request" or hint is Request:
            bound[arg] = request
        elif arg == "session" or hint is Session:
            bound[arg] = session
        elif hint is not inspect.Parameter.empty and hint in providers:
            bound[arg] = providers[hint]()
        elif (key := field_name(arg)) in data:
            bound[arg] = coerce_for(hint, data[key])
    return bound
