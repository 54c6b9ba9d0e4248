"""Session identity — who, if anyone, is behind this request.

A ``Session`` holds one opaque identity reference.  The operations here
are the only way to change it, and each enforces its precondition::

    from sprout.session import end, get_user, start

    start(session, "alice")   # AlreadyLoggedIn if someone is bound
    get_user(session)         # "alice"; NotLoggedIn when empty
    end(session)              # NotLoggedIn when already empty

Transport (the signed cookie) lives in ``sprout.middleware.sessions``;
these functions never touch HTTP.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from time import time
from typing import Any

from sprout.errors import AlreadyLoggedIn, NotLoggedIn
from sprout.security.audit import emit_security_event


@dataclass(slots=True)
class Session:
    """Per-client session state.

    ``user`` is ``None`` for an anonymous client.  ``created_at`` is reset
    whenever the identity changes, so an absolute timeout counts from
    login rather than from first contact.
    """

    user: str | None = None
    created_at: float = field(default_factory=time)

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "created_at": self.created_at}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Session:
        """Rebuild a session from decoded cookie data.

        Raises:
            ValueError: *data* does not describe a session.
        """
        user = data.get("user")
        if user is not None and not isinstance(user, str):
            raise ValueError("session user must be a string")
        try:
            created_at = float(data.get("created_at", time()))
        except (TypeError, ValueError) as exc:
            raise ValueError("session created_at must be a timestamp") from exc
        return cls(user=user, created_at=created_at)


def is_logged_in(session: Session) -> bool:
    return session.user is not None


def is_logged_out(session: Session) -> bool:
    return session.user is None


def start(session: Session, identity: str) -> None:
    """Bind *identity* to *session*.

    Raises:
        AlreadyLoggedIn: An identity is already bound.
    """
    require_logged_out(session)
    session.user = identity
    session.created_at = time()
    emit_security_event("login.success", user_id=identity)


def end(session: Session) -> None:
    """Clear the bound identity.

    Raises:
        NotLoggedIn: The session is already empty.
    """
    user = get_user(session)
    session.user = None
    session.created_at = time()
    emit_security_event("logout", user_id=user)


def get_user(session: Session) -> str:
    """Return the bound identity.

    Raises:
        NotLoggedIn: The session is empty.
    """
    if session.user is None:
        raise NotLoggedIn()
    return session.user


def require_logged_out(session: Session) -> None:
    """Raise ``AlreadyLoggedIn`` unless the session is anonymous."""
    if session.user is not None:
        raise AlreadyLoggedIn()
