"""Security utilities — password hashing and audit events.

Password hashing::

    from sprout.security import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)

Audit events::

    from sprout.security import set_security_event_sink

    set_security_event_sink(events.append)
"""

from sprout.security.audit import SecurityEvent, emit_security_event, set_security_event_sink
from sprout.security.passwords import (
    hash_password,
    low_cost_hasher,
    needs_rehash,
    verify_password,
)

__all__ = [
    "SecurityEvent",
    "emit_security_event",
    "hash_password",
    "low_cost_hasher",
    "needs_rehash",
    "set_security_event_sink",
    "verify_password",
]
