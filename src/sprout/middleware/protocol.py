"""Shape of a sprout middleware.

Any async callable taking the request and the rest of the chain works,
whether a plain function or an object with ``__call__``::

    async def stamp_version(request: Request, next: Next) -> Response:
        return (await next(request)).with_header("X-Garden-Api", "1")
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from sprout.http.request import Request
from sprout.http.response import Response

Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    async def __call__(self, request: Request, next: Next) -> Response: ...
