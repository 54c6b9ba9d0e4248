"""Declarative input schemas and the structural validator.

A schema maps field names to typed ``Field`` declarations::

    from sprout.validation import Schema, array, number, string

    BIN_QUERY = Schema({
        "lat": number(),
        "lng": number(),
        "type": string(min_length=1),
    })

    result = validate(BIN_QUERY, {"lat": "42.36", "lng": "-71.09"})
    # result.errors == (FieldError("type", "Required"),)

Validation is total: every declared field is inspected and every
violation is reported, so a client can fix all of them in one round trip.
Fields absent from the schema are ignored unless the schema (or the
caller) asks for strict mode.

Raw input is untyped.  Values that arrive as strings (query parameters,
url-encoded forms) are coerced to the declared type when the conversion
is unambiguous: ``"42.5"`` to a number, ``"true"`` to a boolean, and a
single string to a one-item array.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from sprout.validation.result import FieldError, ValidationResult
from sprout.validation.rules import Validator
from sprout.validation.rules import max_length as _max_length
from sprout.validation.rules import min_length as _min_length


class FieldType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class Field:
    """A single field declaration.

    ``items`` types the elements of an array field.  ``schema`` types the
    members of an object field; without it any mapping is accepted.
    """

    type: FieldType
    optional: bool = False
    rules: tuple[Validator, ...] = ()
    items: Field | None = None
    schema: Schema | None = None


@dataclass(frozen=True, slots=True)
class Schema:
    """An object shape: field name -> ``Field``.

    ``strict`` rejects fields the schema does not declare.  ``None``
    defers to the caller (the app-wide ``AppConfig.strict_schemas``).
    """

    fields: Mapping[str, Field] = field(default_factory=dict)
    strict: bool | None = None

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


# ---------------------------------------------------------------------------
# Field constructors
# ---------------------------------------------------------------------------


def string(
    *rules: Validator,
    optional: bool = False,
    min_length: int | None = None,
    max_length: int | None = None,
) -> Field:
    """A string field, with optional length bounds."""
    bounds: list[Validator] = []
    if min_length is not None:
        bounds.append(_min_length(min_length))
    if max_length is not None:
        bounds.append(_max_length(max_length))
    return Field(FieldType.STRING, optional=optional, rules=(*bounds, *rules))


def number(*rules: Validator, optional: bool = False) -> Field:
    """A numeric field (int or float; JSON booleans are rejected)."""
    return Field(FieldType.NUMBER, optional=optional, rules=rules)


def boolean(*, optional: bool = False) -> Field:
    """A boolean field."""
    return Field(FieldType.BOOLEAN, optional=optional)


def array(items: Field | None = None, *rules: Validator, optional: bool = False) -> Field:
    """An array field whose elements conform to *items*."""
    return Field(FieldType.ARRAY, optional=optional, rules=rules, items=items)


def nested(schema: Schema | None = None, *, optional: bool = False) -> Field:
    """An object field, validated recursively against *schema*."""
    return Field(FieldType.OBJECT, optional=optional, schema=schema)


def anything(*, optional: bool = False) -> Field:
    """A field that accepts any value (used for unannotated parameters)."""
    return Field(FieldType.ANY, optional=optional)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def validate(
    schema: Schema,
    raw: Any,
    *,
    strict: bool | None = None,
) -> ValidationResult:
    """Validate *raw* against *schema*.

    Args:
        schema: The declared shape.
        raw: Untyped input: a merged mapping of path, query, and body
            values, or anything a client sent.
        strict: Reject undeclared fields.  ``schema.strict`` wins when set;
            this value is the fallback (default ``False``).

    Returns:
        A ``ValidationResult``.  ``data`` holds the typed values of every
        declared field present in *raw*; it is empty if anything failed.
    """
    errors: list[FieldError] = []
    cleaned = _check_object(schema, raw, "", errors, strict)
    if errors:
        return ValidationResult(data={}, errors=tuple(errors))
    return ValidationResult(data=cleaned or {}, errors=())


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _check_object(
    schema: Schema,
    raw: Any,
    path: str,
    errors: list[FieldError],
    strict: bool | None,
) -> dict[str, Any] | None:
    if not isinstance(raw, Mapping):
        errors.append(FieldError(path, "Expected an object"))
        return None

    cleaned: dict[str, Any] = {}
    for name, declared in schema.fields.items():
        field_path = _join(path, name)
        value = raw.get(name)
        if value is None:
            if not declared.optional:
                errors.append(FieldError(field_path, "Required"))
            continue
        ok, converted = _check_value(declared, value, field_path, errors, strict)
        if ok:
            cleaned[name] = converted

    strict_mode = schema.strict if schema.strict is not None else bool(strict)
    if strict_mode:
        errors.extend(
            FieldError(_join(path, str(key)), "Unknown field")
            for key in raw
            if key not in schema.fields
        )
    return cleaned


def _check_value(
    declared: Field,
    value: Any,
    path: str,
    errors: list[FieldError],
    strict: bool | None,
) -> tuple[bool, Any]:
    """Type-check and coerce one value, then run its rules."""
    before = len(errors)

    match declared.type:
        case FieldType.STRING:
            if not isinstance(value, str):
                errors.append(FieldError(path, "Expected a string"))
                return False, None
            converted: Any = value
        case FieldType.NUMBER:
            converted = _to_number(value)
            if converted is None:
                errors.append(FieldError(path, "Expected a number"))
                return False, None
        case FieldType.BOOLEAN:
            converted = _to_bool(value)
            if converted is None:
                errors.append(FieldError(path, "Expected a boolean"))
                return False, None
        case FieldType.ARRAY:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, Sequence) or isinstance(value, bytes):
                errors.append(FieldError(path, "Expected an array"))
                return False, None
            converted = []
            for i, item in enumerate(value):
                item_path = f"{path}[{i}]"
                if declared.items is None:
                    converted.append(item)
                    continue
                if item is None:
                    errors.append(FieldError(item_path, "Required"))
                    continue
                ok, item_value = _check_value(declared.items, item, item_path, errors, strict)
                if ok:
                    converted.append(item_value)
        case FieldType.OBJECT:
            if declared.schema is None:
                if not isinstance(value, Mapping):
                    errors.append(FieldError(path, "Expected an object"))
                    return False, None
                converted = dict(value)
            else:
                converted = _check_object(declared.schema, value, path, errors, strict)
        case _:
            converted = value

    if len(errors) > before:
        return False, None

    for rule in declared.rules:
        message = rule(converted)
        if message is not None:
            errors.append(FieldError(path, message))

    return len(errors) == before, converted


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return None
    if isinstance(value, int):
        return value
    # NaN and the infinities are never meaningful request input
    if isinstance(value, float) and math.isfinite(value):
        return value
    return None


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    return None
