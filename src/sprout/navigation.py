"""Client navigation guard.

The browser client keeps its own page table.  ``NavigationGuard``
decides, before a page is entered, whether to let the client through or
send it elsewhere: protected pages bounce an anonymous client to the
login page, and the login page bounces a signed-in client home.

The guard is advisory.  The dispatcher's auth check is the enforcement
boundary; the guard only keeps the client from rendering a page whose
data calls are bound to fail.  To keep both sides in agreement, a page
can name the server endpoints that back it and let the server registry
decide whether it is protected::

    pages = [
        ClientRoute("/", "Home"),
        ClientRoute("/garden", "Garden", endpoints=(("GET", "/cosmetics"),)),
        ClientRoute("/login", "Login", requires_auth=False),
        ClientRoute("/:catchAll(.*)", "not-found"),
    ]
    guard = NavigationGuard.from_router(pages, app.router)
    guard.before_enter("/garden", logged_in=False)
    # NavigationOutcome(route=ClientRoute("/garden", ...), redirect="Login")
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from functools import partial

from sprout.errors import ConfigurationError, Unauthenticated
from sprout.routing.router import Router


@dataclass(frozen=True, slots=True)
class ClientRoute:
    """A client page.

    ``requires_auth`` of ``None`` means "derive it": from ``endpoints``
    when the guard is built with ``from_router``, else ``False``.
    """

    path: str
    name: str
    requires_auth: bool | None = None
    endpoints: tuple[tuple[str, str], ...] = ()

    @property
    def protected(self) -> bool:
        return bool(self.requires_auth)


@dataclass(frozen=True, slots=True)
class NavigationOutcome:
    """Where a navigation lands.

    ``redirect`` is the name of the page to go to instead, or ``None`` to
    proceed.  ``route`` is ``None`` when no page matches the path.
    """

    route: ClientRoute | None
    redirect: str | None = None

    @property
    def allowed(self) -> bool:
        return self.route is not None and self.redirect is None


class NavigationGuard:
    """Before-enter checks over a table of client pages.

    Pages are matched with the server's ``Router``, so literal pages
    always beat parameters and a ``/:catchAll(.*)`` page only catches
    what nothing else claims, whatever order the table lists them in.
    """

    __slots__ = ("_by_name", "_home_route", "_login_route", "_router")

    def __init__(
        self,
        routes: Iterable[ClientRoute],
        *,
        login_route: str = "Login",
        home_route: str = "Settings",
    ) -> None:
        self._by_name: dict[str, ClientRoute] = {}
        self._router = Router()
        for route in routes:
            if route.name in self._by_name:
                msg = f"Duplicate client route name {route.name!r}."
                raise ConfigurationError(msg)
            self._by_name[route.name] = route
            self._router.register(
                "GET", route.path, partial(self.route_named, route.name), name=route.name
            )
        self._router.compile()

        for name in (login_route, home_route):
            if name not in self._by_name:
                msg = f"Client route {name!r} is not in the route table."
                raise ConfigurationError(msg)
        self._login_route = login_route
        self._home_route = home_route

    @classmethod
    def from_router(
        cls,
        routes: Sequence[ClientRoute],
        router: Router,
        *,
        login_route: str = "Login",
        home_route: str = "Settings",
    ) -> NavigationGuard:
        """Build a guard whose auth flags come from the server registry.

        A page is protected when any endpoint backing it requires auth.

        Raises:
            ConfigurationError: A backing endpoint is not registered, or a
                page's explicit ``requires_auth`` disagrees with its
                endpoints.
        """
        resolved: list[ClientRoute] = []
        for route in routes:
            if not route.endpoints:
                resolved.append(replace(route, requires_auth=bool(route.requires_auth)))
                continue

            derived = False
            for verb, path in route.endpoints:
                match = router.find(verb, path)
                if match is None:
                    msg = (
                        f"Client route {route.name!r} is backed by unknown endpoint "
                        f"{verb} {path}."
                    )
                    raise ConfigurationError(msg)
                derived = derived or match.route.auth_required

            if route.requires_auth is not None and route.requires_auth != derived:
                msg = (
                    f"Client route {route.name!r} declares requires_auth={route.requires_auth} "
                    f"but its endpoints say {derived}."
                )
                raise ConfigurationError(msg)
            resolved.append(replace(route, requires_auth=derived))

        return cls(resolved, login_route=login_route, home_route=home_route)

    @property
    def routes(self) -> tuple[ClientRoute, ...]:
        return tuple(self._by_name.values())

    def route_named(self, name: str) -> ClientRoute:
        return self._by_name[name]

    def match(self, path: str) -> ClientRoute | None:
        """The page for *path*, or ``None``."""
        found = self._router.find("GET", path)
        if found is None:
            return None
        return found.route.handler()

    def before_enter(self, path: str, *, logged_in: bool) -> NavigationOutcome:
        """Decide whether navigating to *path* proceeds or redirects."""
        route = self.match(path)
        if route is None:
            return NavigationOutcome(route=None)
        if route.protected and not logged_in:
            return NavigationOutcome(route=route, redirect=self._login_route)
        if route.name == self._login_route and logged_in:
            return NavigationOutcome(route=route, redirect=self._home_route)
        return NavigationOutcome(route=route)

    def on_error(self, kind: str) -> str | None:
        """Page to show after a failed server call of error *kind*."""
        if kind == Unauthenticated.kind:
            return self._login_route
        return None


class LoginState:
    """The client's cached "is logged in" flag.

    Kept in step with server responses: a successful login or session
    read sets it, logout or any 401 clears it.
    """

    __slots__ = ("_logged_in",)

    def __init__(self, logged_in: bool = False) -> None:
        self._logged_in = logged_in

    @property
    def logged_in(self) -> bool:
        return self._logged_in

    def on_login(self) -> None:
        self._logged_in = True

    def on_logout(self) -> None:
        self._logged_in = False

    def observe(self, status: int, *, session_read: bool = False) -> None:
        """Update from a response status."""
        if status == 401:
            self._logged_in = False
        elif session_read and 200 <= status < 300:
            self._logged_in = True
