"""Session audit trail.

Login, logout and every request turned away for want of a session are
reported here. Each report is logged on ``sprout.security`` at DEBUG and,
when a sink is installed, handed to it as a ``SecurityEvent``.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import Any, TypeAlias

logger = logging.getLogger("sprout.security")


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    name: str
    timestamp: float = field(default_factory=time)
    path: str | None = None
    method: str | None = None
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


SecurityEventSink: TypeAlias = Callable[[SecurityEvent], None]


class _SinkSlot:
    """Holds the single process-wide sink."""

    __slots__ = ("_lock", "current")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.current: SecurityEventSink | None = None

    def swap(self, sink: SecurityEventSink | None) -> None:
        with self._lock:
            self.current = sink

    def get(self) -> SecurityEventSink | None:
        with self._lock:
            return self.current


_slot = _SinkSlot()


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Install *sink* for every later event; ``None`` uninstalls it."""
    _slot.swap(sink)


def emit_security_event(
    name: str,
    *,
    request: Any | None = None,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Record *name*, taking path and method from *request* when one is given."""
    path = getattr(request, "path", None)
    logger.debug("%s (user=%s, path=%s)", name, user_id, path)
    sink = _slot.get()
    if sink is None:
        return
    sink(
        SecurityEvent(
            name=name,
            path=path,
            method=getattr(request, "method", None),
            user_id=user_id,
            details=details or {},
        )
    )
