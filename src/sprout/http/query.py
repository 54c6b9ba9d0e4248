"""Read-only query string parameters."""

from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qs


class QueryParams(Mapping[str, str]):
    """Parsed query string.

    ``params["lat"]`` returns the first value for a key; ``get_list``
    returns all of them.  ``to_input()`` flattens the parameters into the
    shape the dispatcher validates: single values stay strings, repeated
    keys become lists.
    """

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        self._data: dict[str, list[str]] = parse_qs(
            query_string.decode("latin-1"), keep_blank_values=True
        )

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"QueryParams({self._data!r})"

    @property
    def raw(self) -> bytes:
        return self._raw

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, ()))

    def to_input(self) -> dict[str, Any]:
        """Flatten to ``{name: value}``; repeated names map to a list."""
        return {
            key: values[0] if len(values) == 1 else list(values)
            for key, values in self._data.items()
        }
