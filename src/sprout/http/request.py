"""What a handler receives: the parsed ASGI scope plus a lazily read body."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from sprout._internal.asgi import Receive, Scope
from sprout.http.cookies import parse_cookies
from sprout.http.headers import Headers
from sprout.http.query import QueryParams

_FORM_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True, slots=True)
class Request:
    """One incoming call.

    Everything but the body is decoded up front. The body is pulled from
    the ASGI channel on first use and kept, so ``json()`` after ``body()``
    does not read twice.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None
    cookies: Mapping[str, str]
    _receive: Receive
    # Holds the body once read; frozen field, mutable contents
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        path_params: dict[str, str] | None = None,
    ) -> Request:
        headers = Headers(tuple(scope.get("headers", ())))
        peer = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            path_params=path_params or {},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(peer) if peer else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        """Lower-cased media type with any ``; charset=...`` dropped."""
        raw = self.headers.get("content-type")
        return None if raw is None else raw.partition(";")[0].strip().lower()

    @property
    def content_length(self) -> int | None:
        """Declared body size, or ``None`` when absent or not a number."""
        raw = self.headers.get("content-length")
        if raw is not None and raw.isdigit():
            return int(raw)
        return None

    @property
    def is_form(self) -> bool:
        return self.content_type == _FORM_TYPE

    async def stream(self) -> AsyncGenerator[bytes]:
        more = True
        while more:
            message = await self._receive()
            if chunk := message.get("body", b""):
                yield chunk
            more = message.get("more_body", False)

    async def body(self) -> bytes:
        try:
            return self._cache["body"]
        except KeyError:
            data = self._cache["body"] = b"".join([c async for c in self.stream()])
            return data

    async def json(self) -> Any:
        """Decode the body as JSON; malformed input raises ``ValueError``."""
        return json.loads(await self.body())

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def form(self) -> dict[str, Any]:
        """Decode a url-encoded body. A name given more than once maps to a list."""
        fields = parse_qs((await self.body()).decode("latin-1"), keep_blank_values=True)
        return {name: values if len(values) > 1 else values[0] for name, values in fields.items()}
