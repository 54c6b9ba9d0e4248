"""Call sync or async callables uniformly.

Handlers, error handlers, lifecycle hooks and fan-out effects can each be
``def`` or ``async def``.  The sync/async check lives here only.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable::

        result = await invoke(handler, **kwargs)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
