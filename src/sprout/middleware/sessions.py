"""Sessions carried in a signed cookie.

The cookie holds the JSON form of ``Session`` signed with itsdangerous, so
a client can read it but not forge it. While a request is in flight its
session sits in a ContextVar; ``get_session()`` returns it, and handlers
that name a ``session`` parameter receive it directly.
"""

import logging
from contextvars import ContextVar, Token
from dataclasses import dataclass
from time import time
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from sprout.errors import ConfigurationError
from sprout.http.cookies import SetCookie
from sprout.http.request import Request
from sprout.http.response import Response
from sprout.middleware.protocol import Next
from sprout.session import Session

logger = logging.getLogger("sprout.security")

_current: ContextVar[Session | None] = ContextVar("sprout_session", default=None)


def get_session() -> Session:
    """The session of the request being served.

    With no ``SessionMiddleware`` installed an anonymous session is made
    on demand and lives only as long as the request.
    """
    if (session := _current.get()) is None:
        session = Session()
        _current.set(session)
    return session


def bind_session(session: Session | None) -> Token[Session | None]:
    return _current.set(session)


def reset_session(token: Token[Session | None]) -> None:
    _current.reset(token)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Cookie settings for ``SessionMiddleware``.

    ``max_age`` bounds both the cookie and its signature, and is renewed on
    every response. ``absolute_timeout_seconds`` instead counts from login
    and is never renewed.
    """

    secret_key: str
    cookie_name: str = "sprout_session"
    max_age: int = 24 * 60 * 60
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    absolute_timeout_seconds: int | None = None


class SessionMiddleware:
    """Restores the session from its cookie and writes it back afterwards::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key=key)))
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "Signed sessions need a key: SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="sprout.session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, cookie_value: str | None) -> Session:
        """Session stored in *cookie_value*, or an anonymous one if it cannot be trusted."""
        if not cookie_value:
            return Session()
        restored = self._restore(cookie_value)
        if restored is None:
            return Session()
        limit = self._config.absolute_timeout_seconds
        if limit is not None and time() - restored.created_at > limit:
            logger.debug("Dropping session of %s: logged in too long ago", restored.user)
            return Session()
        return restored

    def _restore(self, cookie_value: str) -> Session | None:
        try:
            payload: Any = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadData:
            logger.debug("Dropping session cookie: signature invalid or expired")
            return None
        if not isinstance(payload, dict):
            return None
        try:
            return Session.from_mapping(payload)
        except ValueError:
            logger.debug("Dropping session cookie: payload is not a session")
            return None

    def dump(self, session: Session) -> str:
        return self._serializer.dumps(session.to_dict())

    async def __call__(self, request: Request, next: Next) -> Response:
        cfg = self._config
        session = self.load(request.cookies.get(cfg.cookie_name))
        token = bind_session(session)
        try:
            response = await next(request)
        finally:
            reset_session(token)

        # Re-signed every time so max_age counts from the latest request
        cookie = SetCookie(
            name=cfg.cookie_name,
            value=self.dump(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )
        return response.with_cookie(cookie)
