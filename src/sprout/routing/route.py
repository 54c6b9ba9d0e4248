"""Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sprout.validation.schema import Schema

VERBS: frozenset[str] = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/users``         (kind="static")
    Param:     ``/:id``           (kind="param", param_name="id")
    Catch-all: ``/:rest(.*)``     (kind="catch_all", param_name="rest")
    """

    value: str
    kind: str = "static"
    param_name: str | None = None

    @property
    def is_param(self) -> bool:
        return self.kind != "static"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route entry.

    Created during app setup, compiled into the router at freeze time.
    ``schema`` is the input schema the dispatcher validates against;
    ``status`` is the success status used when the handler returns a
    plain value.
    """

    path: str
    handler: Callable[..., Any]
    verb: str
    schema: Schema | None = None
    auth_required: bool = False
    name: str | None = None
    status: int = 200
    segments: tuple[PathSegment, ...] = field(default=(), compare=False, repr=False)

    @property
    def param_names(self) -> tuple[str, ...]:
        """Names of the parameter and catch-all segments, left to right."""
        return tuple(s.param_name or "" for s in self.segments if s.is_param)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
