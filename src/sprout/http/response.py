"""Outgoing responses.

``Response`` is frozen: status, headers and cookies are layered on with
``with_*`` calls that each hand back a fresh copy. Handlers mostly return
plain dicts and leave building one to content negotiation.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, TypeAlias

from sprout.http.cookies import SetCookie

JSON_CONTENT_TYPE = "application/json"

HeaderPairs: TypeAlias = tuple[tuple[str, str], ...]


@dataclass(frozen=True, slots=True)
class Response:
    body: str | bytes = ""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: HeaderPairs = ()
    cookies: tuple[SetCookie, ...] = ()

    @classmethod
    def json(cls, data: Any, status: int = 200) -> Response:
        """JSON body; values ``json`` cannot encode are written with ``str()``."""
        return cls(body=json.dumps(data, default=str), status=status)

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        return self.with_headers(((name, value),))

    def with_headers(self, headers: Mapping[str, str] | HeaderPairs) -> Response:
        """Append headers, keeping any already present with the same name."""
        added = headers.items() if isinstance(headers, Mapping) else headers
        return replace(self, headers=self.headers + tuple(added))

    def with_cookie(self, cookie: SetCookie) -> Response:
        return replace(self, cookies=self.cookies + (cookie,))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Tell the client to drop *name*."""
        return self.with_cookie(SetCookie.expired(name, path=path))

    @property
    def body_bytes(self) -> bytes:
        body = self.body
        return body.encode("utf-8") if isinstance(body, str) else body

    @property
    def text(self) -> str:
        body = self.body
        return body.decode("utf-8") if isinstance(body, bytes) else body

    def json_body(self) -> Any:
        """Parsed JSON body, or ``None`` when the body is empty."""
        return json.loads(self.body_bytes) if self.body else None

    def header(self, name: str) -> str | None:
        """First header called *name*, compared case-insensitively."""
        wanted = name.lower()
        return next((v for k, v in self.headers if k.lower() == wanted), None)
