"""Value rules attached to schema fields.

A rule takes an already type-checked value and returns an error message,
or ``None`` when the value passes. The parameterized ones below are
factories; anything with the same call shape can be used alongside them.
"""

import re
from collections.abc import Callable
from typing import Any, TypeAlias

Validator: TypeAlias = Callable[[Any], str | None]


def _size_bound(n: int, too_far: Callable[[int], bool], bound: str) -> Validator:
    def check(value: Any) -> str | None:
        if not too_far(len(value)):
            return None
        unit = f"{n} characters" if isinstance(value, str) else f"{n} items"
        verb = "be" if isinstance(value, str) else "have"
        return f"Must {verb} {bound} {unit}"

    return check


def max_length(n: int) -> Validator:
    """Strings by character count, arrays by item count."""
    return _size_bound(n, lambda size: size > n, "at most")


def min_length(n: int) -> Validator:
    return _size_bound(n, lambda size: size < n, "at least")


def matches(pattern: str, message: str | None = None) -> Validator:
    """Anchored at the start (``re.match``); anchor the end yourself."""
    regex = re.compile(pattern)

    def check(value: str) -> str | None:
        return None if regex.match(value) else message or f"Must match pattern: {pattern}"

    return check


def one_of(*choices: str) -> Validator:
    allowed = frozenset(choices)
    failure = f"Must be one of: {', '.join(sorted(allowed))}"

    def check(value: str) -> str | None:
        return None if value in allowed else failure

    return check


def integer(value: int | float) -> str | None:
    """Rejects floats with a fractional part; ``3.0`` passes."""
    if isinstance(value, float) and not value.is_integer():
        return "Must be a whole number"
    return None


def minimum(n: float) -> Validator:
    def check(value: float) -> str | None:
        return f"Must be at least {n}" if value < n else None

    return check


def maximum(n: float) -> Validator:
    def check(value: float) -> str | None:
        return f"Must be at most {n}" if value > n else None

    return check
