"""Password hashing — argon2id via ``argon2-cffi``.

Hashes are PHC-format strings (``$argon2id$v=19$m=...``) that embed
their own parameters, so stored hashes keep verifying after the cost
settings change.  ``needs_rehash`` tells the caller when to upgrade one.

Usage::

    from sprout.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_default_hasher = PasswordHasher()


def low_cost_hasher() -> PasswordHasher:
    """A deliberately cheap hasher for tests and local fixtures."""
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


def hash_password(password: str, *, hasher: PasswordHasher | None = None) -> str:
    """Hash *password* with argon2id.

    Raises:
        ValueError: *password* is empty.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return (hasher or _default_hasher).hash(password)


def verify_password(
    password: str,
    stored: str,
    *,
    hasher: PasswordHasher | None = None,
) -> bool:
    """Return ``True`` if *password* matches the *stored* hash.

    A malformed hash verifies as ``False`` rather than raising.
    """
    if not password or not stored:
        return False
    try:
        return (hasher or _default_hasher).verify(stored, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(stored: str, *, hasher: PasswordHasher | None = None) -> bool:
    """True when *stored* was hashed with weaker parameters than *hasher*'s."""
    return (hasher or _default_hasher).check_needs_rehash(stored)
