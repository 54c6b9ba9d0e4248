"""The request being served on the current task.

The pipeline binds ``request_var`` around each dispatch, so code far from
the handler (concepts, sync actions) can reach the caller's request.
"""

from contextvars import ContextVar

from sprout.http.request import Request

request_var: ContextVar[Request] = ContextVar("sprout_request")


def get_request() -> Request:
    """The in-flight request; ``LookupError`` when nothing is being served."""
    return request_var.get()
