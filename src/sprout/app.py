"""The sprout ``App``: an endpoint registry that compiles into an ASGI callable.

Endpoints, middleware, providers and hooks are collected while the module
that builds the app is imported. The first request (or lifespan startup,
or a look at ``app.router``) compiles everything once, after which any
further registration is an error.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from sprout._internal.asgi import Receive, Scope, Send
from sprout._internal.invoke import invoke
from sprout._internal.types import ErrorHandler, Handler, Provider
from sprout.config import AppConfig
from sprout.errors import ConfigurationError
from sprout.middleware.protocol import Middleware
from sprout.routing.route import Route
from sprout.routing.router import Router
from sprout.server.handler import INJECTED_NAMES, INJECTED_TYPES, handle_request
from sprout.validation import Schema, field_name, infer_schema

logger = logging.getLogger("sprout.server")

_SPREAD_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


@dataclass(slots=True)
class _Declared:
    """One endpoint as registered, before its schema is settled."""

    verb: str
    path: str
    handler: Handler
    schema: Schema | None
    auth_required: bool
    name: str | None
    status: int

    def build(self, skip_types: tuple[Any, ...]) -> Route:
        schema = self.schema
        if schema is None:
            schema = infer_schema(self.handler, skip_names=INJECTED_NAMES, skip_types=skip_types)
        else:
            self._check_binding(schema, skip_types)
        return Route(
            path=self.path,
            handler=self.handler,
            verb=self.verb,
            schema=schema,
            auth_required=self.auth_required,
            name=self.name,
            status=self.status,
        )

    def _check_binding(self, schema: Schema, skip_types: tuple[Any, ...]) -> None:
        """A hand-written schema must cover every required handler argument."""
        for arg, param in inspect.signature(self.handler, eval_str=True).parameters.items():
            if param.kind in _SPREAD_KINDS or param.default is not inspect.Parameter.empty:
                continue
            if arg in INJECTED_NAMES or param.annotation in skip_types:
                continue
            if field_name(arg) not in schema:
                msg = (
                    f"{self.verb} {self.path!r}: handler {self.handler.__name__!r} "
                    f"needs {arg!r} but the schema never declares it."
                )
                raise ConfigurationError(msg)


class App:
    """Registry of endpoints plus the ASGI entry point that serves them.

    Declare endpoints one at a time::

        @app.route("/bin", methods=["POST"], auth_required=True, status=201)
        async def create_bin(session: SessionData, lat: float, lng: float) -> dict: ...

    or feed a whole table through ``add_route``. Compilation happens at most
    once, under a lock, so concurrent first requests from several workers
    all see the same router.
    """

    __slots__ = (
        "_compiled",
        "_declared",
        "_error_handlers",
        "_lock",
        "_middleware",
        "_providers",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._declared: list[_Declared] = []
        self._middleware: list[Middleware] = []
        self._providers: dict[type, Provider] = {}
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._lock = threading.Lock()
        # (router, middleware chain) once compiled
        self._compiled: tuple[Router, tuple[Middleware, ...]] | None = None

    # -- registration --

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] | None = None,
        schema: Schema | None = None,
        auth_required: bool = False,
        name: str | None = None,
        status: int = 200,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`add_route`, once per verb in *methods* (GET by default).

        ``:param`` segments bind path parameters; a final ``:rest(.*)``
        swallows the remainder of the path.
        """

        def register(func: Handler) -> Handler:
            for verb in methods or ("GET",):
                self.add_route(
                    verb,
                    path,
                    func,
                    schema=schema,
                    auth_required=auth_required,
                    name=name,
                    status=status,
                )
            return func

        return register

    def add_route(
        self,
        verb: str,
        path: str,
        handler: Handler,
        *,
        schema: Schema | None = None,
        auth_required: bool = False,
        name: str | None = None,
        status: int = 200,
    ) -> None:
        """Declare one endpoint.

        Without *schema* the input is described by the handler's own
        signature. With ``auth_required`` an anonymous caller gets 401
        before any input is parsed.
        """
        self._mutable()
        self._declared.append(
            _Declared(verb.upper(), path, handler, schema, auth_required, name, status)
        )

    def provide(self, annotation: type, factory: Provider) -> None:
        """Inject ``factory()`` into any handler argument annotated with *annotation*."""
        self._mutable()
        self._providers[annotation] = factory

    def error(
        self, code_or_exception: int | type[Exception]
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Decorator registering a handler for a status code or exception class."""

        def register(func: ErrorHandler) -> ErrorHandler:
            self._mutable()
            self._error_handlers[code_or_exception] = func
            return func

        return register

    def add_middleware(self, middleware: Middleware) -> None:
        self._mutable()
        self._middleware.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Run *func* when the server starts, before any request is accepted."""
        self._mutable()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        self._mutable()
        self._shutdown_hooks.append(func)
        return func

    # -- compiled view --

    @property
    def router(self) -> Router:
        """The compiled route table. Reading it compiles the app."""
        return self._ensure_frozen()[0]

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with the pounce development server."""
        self._ensure_frozen()
        from sprout.server.dev import run_dev_server

        cfg = self.config
        run_dev_server(
            self,
            host or cfg.host,
            port or cfg.port,
            reload=cfg.debug,
            reload_include=cfg.reload_include,
            reload_dirs=cfg.reload_dirs,
        )

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return
        router, middleware = self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            router=router,
            middleware=middleware,
            error_handlers=self._error_handlers,
            config=self.config,
            providers=self._providers or None,
        )

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            event = (await receive())["type"]
            if event == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("Startup hook failed; refusing to serve")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif event == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- compilation --

    def _mutable(self) -> None:
        if self._compiled is not None:
            msg = "The app is already serving; register endpoints before the first request."
            raise RuntimeError(msg)

    def _ensure_frozen(self) -> tuple[Router, tuple[Middleware, ...]]:
        compiled = self._compiled
        if compiled is not None:
            return compiled
        with self._lock:
            if self._compiled is None:
                self._compiled = self._compile()
            return self._compiled

    def _compile(self) -> tuple[Router, tuple[Middleware, ...]]:
        skip_types = (*INJECTED_TYPES, *self._providers)
        router = Router()
        for declared in self._declared:
            router.add(declared.build(skip_types))
        router.compile()
        logger.debug("Compiled %d endpoints", len(self._declared))
        return router, tuple(self._middleware)
