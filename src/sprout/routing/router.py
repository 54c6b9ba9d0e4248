"""Endpoint lookup by verb and path.

Paths are stored in a segment trie. At each level a literal segment is
tried before a ``:param`` and a ``:param`` before a trailing catch-all,
and a branch that has no route for the requested verb is abandoned for
the next one. Parameter names belong to each route rather than to the
trie edge, so ``/friend/:to`` and ``/friend/:from/requests`` share an
edge yet bind different names, whatever order they were added in.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any, TypeAlias

from sprout.errors import ConfigurationError, MethodNotAllowed, NotFound
from sprout.routing.route import VERBS, PathSegment, Route, RouteMatch

if TYPE_CHECKING:
    from sprout.validation.schema import Schema

_PARAM_RE = re.compile(r"^:(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?P<catch_all>\(\.\*\))?$")

_Hit: TypeAlias = tuple[Route, tuple[str, ...]]


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def parse_path(path: str) -> list[PathSegment]:
    """Break a route pattern into ``PathSegment`` values.

    ``"/friend/requests/:to"`` gives two literal segments and a ``param``
    named ``to``; ``"/:catchAll(.*)"`` gives one ``catch_all``.
    """
    parts = _split(path)
    segments: list[PathSegment] = []
    for position, part in enumerate(parts, start=1):
        if not part.startswith(":"):
            segments.append(PathSegment(value=part))
            continue
        found = _PARAM_RE.match(part)
        if found is None:
            msg = f"Bad segment {part!r} in {path!r}. Use ':name' or ':name(.*)'."
            raise ConfigurationError(msg)
        kind = "catch_all" if found.group("catch_all") else "param"
        if kind == "catch_all" and position != len(parts):
            msg = f"Catch-all {part!r} in {path!r} must be the last segment."
            raise ConfigurationError(msg)
        segments.append(PathSegment(value=part, kind=kind, param_name=found.group("name")))

    names = [seg.param_name for seg in segments if seg.is_param]
    if len(set(names)) < len(names):
        msg = f"Duplicate parameter name in {path!r}."
        raise ConfigurationError(msg)
    return segments


class _Node:
    __slots__ = ("catch_all", "param", "static", "terminal")

    def __init__(self) -> None:
        self.static: dict[str, _Node] = {}
        self.param: _Node | None = None
        # verb -> route ending exactly here / consuming everything below
        self.terminal: dict[str, Route] = {}
        self.catch_all: dict[str, Route] = {}

    def walk(self) -> list[Route]:
        found = [*self.terminal.values()]
        for child in self.static.values():
            found += child.walk()
        if self.param is not None:
            found += self.param.walk()
        return found + [*self.catch_all.values()]


class Router:
    """Endpoint table, filled during setup and then locked.

    ::

        router = Router()
        router.register("GET", "/users/:username", get_user)
        router.compile()
        router.resolve("GET", "/users/alice").path_params  # {"username": "alice"}
    """

    __slots__ = ("_locked", "_root")

    def __init__(self) -> None:
        self._root = _Node()
        self._locked = False

    def register(
        self,
        verb: str,
        path: str,
        handler: Callable[..., Any],
        *,
        schema: Schema | None = None,
        auth_required: bool = False,
        name: str | None = None,
        status: int = 200,
    ) -> Route:
        """Shorthand for ``add(Route(...))``."""
        return self.add(
            Route(
                path=path,
                handler=handler,
                verb=verb,
                schema=schema,
                auth_required=auth_required,
                name=name,
                status=status,
            )
        )

    def add(self, route: Route) -> Route:
        """Insert *route*, returning the stored copy with its segments parsed."""
        if self._locked:
            msg = "The route table is read-only after compilation."
            raise RuntimeError(msg)

        verb = route.verb.upper()
        if verb not in VERBS:
            msg = (
                f"Unsupported verb {route.verb!r} for {route.path!r}. "
                f"Use one of: {', '.join(sorted(VERBS))}."
            )
            raise ConfigurationError(msg)

        segments = tuple(parse_path(route.path))
        route = replace(route, verb=verb, segments=segments)
        node = self._root
        for seg in segments:
            if seg.kind == "catch_all":
                _claim(node.catch_all, route)
                return route
            if seg.kind == "param":
                node.param = node.param or _Node()
                node = node.param
            else:
                node = node.static.setdefault(seg.value, _Node())
        _claim(node.terminal, route)
        return route

    def compile(self) -> None:
        self._locked = True

    @property
    def routes(self) -> list[Route]:
        """Every stored route; used by ``sprout routes`` and the navigation guard."""
        return self._root.walk()

    def find(self, verb: str, path: str) -> RouteMatch | None:
        """The matching route with its bound parameters, or ``None``."""
        hit = _search(self._root, _split(path), verb.upper())
        if hit is None:
            return None
        route, values = hit
        return RouteMatch(route=route, path_params=dict(zip(route.param_names, values)))

    def resolve(self, verb: str, path: str) -> RouteMatch:
        """Like ``find`` but raises instead of returning ``None``.

        ``MethodNotAllowed`` (carrying the verbs that would have matched)
        when the path exists under other verbs, ``NotFound`` otherwise.
        """
        found = self.find(verb, path)
        if found is not None:
            return found
        verbs = _verbs_at(self._root, _split(path))
        if verbs:
            raise MethodNotAllowed(frozenset(verbs))
        raise NotFound(f"No route matches {verb.upper()} {path!r}")


def _claim(slot: dict[str, Route], route: Route) -> None:
    taken = slot.get(route.verb)
    if taken is not None:
        msg = f"Route {route.verb} {route.path!r} conflicts with {taken.verb} {taken.path!r}."
        raise ConfigurationError(msg)
    slot[route.verb] = route


def _search(node: _Node, parts: list[str], verb: str, bound: tuple[str, ...] = ()) -> _Hit | None:
    if not parts:
        if verb in node.terminal:
            return node.terminal[verb], bound
        # A catch-all may match nothing at all
        if verb in node.catch_all:
            return node.catch_all[verb], (*bound, "")
        return None

    head, rest = parts[0], parts[1:]
    literal = node.static.get(head)
    if literal is not None and (hit := _search(literal, rest, verb, bound)) is not None:
        return hit
    if node.param is not None and (hit := _search(node.param, rest, verb, (*bound, head))):
        return hit
    if verb in node.catch_all:
        return node.catch_all[verb], (*bound, "/".join(parts))
    return None


def _verbs_at(node: _Node, parts: list[str]) -> set[str]:
    """Every verb some route pattern matching *parts* is registered under."""
    verbs = set(node.catch_all)
    if not parts:
        return verbs | set(node.terminal)
    head, rest = parts[0], parts[1:]
    if head in node.static:
        verbs |= _verbs_at(node.static[head], rest)
    if node.param is not None:
        verbs |= _verbs_at(node.param, rest)
    return verbs
