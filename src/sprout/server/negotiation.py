"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.  Everything a
handler can return becomes JSON except a ``Response``, which passes
through untouched.
"""

import dataclasses
import json
from typing import Any

from sprout.http.response import Response


def to_jsonable(value: Any) -> Any:
    """Reduce dataclasses (recursively) to plain dicts for ``json.dumps``."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return value


def _json_default(value: Any) -> Any:
    converted = to_jsonable(value)
    if converted is value:
        return str(value)
    return converted


def negotiate(value: Any, *, status: int = 200) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``(value, int)``        -> negotiate value, override status
    3. ``(value, int, dict)``  -> negotiate value, override status + headers
    4. ``bytes``               -> application/octet-stream
    5. anything else           -> application/json with *status*
       (dict, list, str, numbers, bool, ``None``, dataclasses)
    """
    match value:
        case Response():
            return value
        case (inner, int() as override) if _is_status(value, override):
            return negotiate(inner, status=override)
        case (inner, int() as override, dict() as headers) if _is_status(value, override):
            return negotiate(inner, status=override).with_headers(headers)
        case bytes():
            return Response(body=value, status=status, content_type="application/octet-stream")
        case _:
            body = json.dumps(to_jsonable(value), default=_json_default)
            return Response(body=body, status=status)


def _is_status(value: Any, override: int) -> bool:
    # bool is an int subclass; (value, True) is data, not a status
    return isinstance(value, tuple) and not isinstance(override, bool)
