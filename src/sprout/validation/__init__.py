"""Input validation — declarative schemas, composable rules, clean results.

Usage::

    from sprout.validation import Schema, nested, string, validate

    CREATE_POST = Schema({
        "content": string(min_length=1, max_length=500),
        "options": nested(Schema({"backgroundColor": string(optional=True)}), optional=True),
    })

    result = validate(CREATE_POST, raw)
    if not result:
        # result.errors == (FieldError("content", "Required"),)
        ...
    # result.data has typed values
"""

from sprout.validation.infer import coerce_for, field_for, field_name, infer_schema
from sprout.validation.result import FieldError, ValidationResult
from sprout.validation.rules import (
    Validator,
    integer,
    matches,
    max_length,
    maximum,
    min_length,
    minimum,
    one_of,
)
from sprout.validation.schema import (
    Field,
    FieldType,
    Schema,
    anything,
    array,
    boolean,
    nested,
    number,
    string,
    validate,
)

__all__ = [
    "Field",
    "FieldError",
    "FieldType",
    "Schema",
    "ValidationResult",
    "Validator",
    "anything",
    "array",
    "boolean",
    "coerce_for",
    "field_for",
    "field_name",
    "infer_schema",
    "integer",
    "matches",
    "max_length",
    "maximum",
    "min_length",
    "minimum",
    "nested",
    "number",
    "one_of",
    "string",
    "validate",
]
