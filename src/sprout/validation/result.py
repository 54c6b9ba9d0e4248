"""Validation result — immutable container for validated data or errors."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FieldError:
    """One violation: the dotted/indexed path of the field and why it failed.

    The root of the input is the empty path ``""``.
    """

    path: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.path, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating raw input against a schema.

    ``is_valid`` is True when there are no errors.
    The result is falsy when invalid, so you can write::

        result = validate(schema, raw)
        if not result:
            raise ValidationFailed(result.errors)

    ``data`` holds the typed, cleaned values for every declared field
    present in the input.  It is empty whenever ``errors`` is not, so
    a result is never partially valid.

    ``errors`` lists every violation found::

        (FieldError("username", "Required"),
         FieldError("lat", "Expected a number"))
    """

    data: dict[str, Any]
    errors: tuple[FieldError, ...]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    @property
    def error_fields(self) -> frozenset[str]:
        """Paths of every field that failed."""
        return frozenset(e.path for e in self.errors)

    def __bool__(self) -> bool:
        """Falsy when invalid, for the ``if not result:`` pattern."""
        return self.is_valid
