"""Schema inference from handler signatures.

When a route declares no schema, its handler's parameters are the
schema: each annotated parameter becomes a field of the matching type,
and a default value (or ``X | None``) makes it optional::

    async def locate_bin(session: Session, lat: float, lng: float, type: str): ...

    infer_schema(locate_bin, skip_names={"session"})
    # Schema({"lat": number(), "lng": number(), "type": string()})
"""

import inspect
import keyword
import types
import typing
from collections.abc import Callable, Collection, Mapping
from typing import Any, Union, get_args, get_origin

from sprout.validation.rules import integer
from sprout.validation.schema import Field, FieldType, Schema

_ARRAY_ORIGINS = (list, tuple, set, frozenset, Collection)


def infer_schema(
    handler: Callable[..., Any],
    *,
    skip_names: Collection[str] = (),
    skip_types: Collection[Any] = (),
) -> Schema:
    """Derive a ``Schema`` from *handler*'s keyword-bindable parameters.

    Parameters named in *skip_names* or annotated with a type in
    *skip_types* are injected by the dispatcher, not read from input.
    ``*args`` / ``**kwargs`` are ignored.
    """
    sig = inspect.signature(handler, eval_str=True)
    fields: dict[str, Field] = {}
    for name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if name in skip_names or param.annotation in skip_types:
            continue
        optional = param.default is not inspect.Parameter.empty
        fields[field_name(name)] = field_for(param.annotation, optional=optional)
    return Schema(fields)


def field_name(param: str) -> str:
    """Input field bound to parameter *param*.

    A Python keyword cannot be a parameter name, so ``from_`` reads the
    ``from`` field.
    """
    if param.endswith("_") and keyword.iskeyword(param[:-1]):
        return param[:-1]
    return param


def field_for(annotation: Any, *, optional: bool = False) -> Field:
    """Map a type annotation to a ``Field``."""
    inner, nullable = unwrap_optional(annotation)
    optional = optional or nullable

    if inner is inspect.Parameter.empty or inner is Any:
        return Field(FieldType.ANY, optional=optional)
    if inner is bool:
        return Field(FieldType.BOOLEAN, optional=optional)
    if inner is int:
        return Field(FieldType.NUMBER, optional=optional, rules=(integer,))
    if inner is float:
        return Field(FieldType.NUMBER, optional=optional)
    if inner is str:
        return Field(FieldType.STRING, optional=optional)

    origin = get_origin(inner) or inner
    if origin in _ARRAY_ORIGINS:
        args = get_args(inner)
        items = field_for(args[0]) if args and args[0] is not Ellipsis else None
        return Field(FieldType.ARRAY, optional=optional, items=items)
    if typing.is_typeddict(inner):
        hints = typing.get_type_hints(inner)
        members = {
            name: field_for(hint, optional=name in inner.__optional_keys__)
            for name, hint in hints.items()
        }
        return Field(FieldType.OBJECT, optional=optional, schema=Schema(members))
    if origin in (dict, Mapping):
        return Field(FieldType.OBJECT, optional=optional)
    return Field(FieldType.ANY, optional=optional)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``; anything else is ``(annotation, False)``."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        nullable = len(args) != len(get_args(annotation))
        if len(args) == 1:
            return args[0], nullable
        return Any, nullable
    return annotation, False


def coerce_for(annotation: Any, value: Any) -> Any:
    """Narrow a validated value to its parameter's annotation.

    Validation yields JSON-ish types; an ``int`` parameter given ``3.0``
    receives ``3``, and a ``set[str]`` parameter receives a set.
    """
    inner, _ = unwrap_optional(annotation)
    if inner is int and isinstance(value, float):
        return int(value)
    if inner is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    origin = get_origin(inner) or inner
    if origin in (set, frozenset, tuple) and isinstance(value, list):
        return origin(value)
    return value
