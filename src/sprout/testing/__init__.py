"""Test utilities for sprout applications.

    from sprout.testing import TestClient, error_of
"""

from typing import Any

from sprout.http.response import Response
from sprout.testing.client import TestClient


def error_of(response: Response) -> dict[str, Any]:
    """Return the error envelope of a failed response, asserting its shape."""
    body = response.json_body()
    assert isinstance(body, dict), f"Expected an error envelope, got {body!r}"
    assert "error" in body and "message" in body, f"Not an error envelope: {body!r}"
    return body


__all__ = ["TestClient", "error_of"]
