"""The garden client's page table.

Pages that fetch protected data name the endpoints behind them, so
their auth flag comes from the server registry instead of being kept in
sync by hand.
"""

from sprout.navigation import ClientRoute, NavigationGuard
from sprout.routing.router import Router

CLIENT_ROUTES: tuple[ClientRoute, ...] = (
    ClientRoute("/", "Home"),
    ClientRoute("/map", "Map"),
    ClientRoute("/setting", "Settings", requires_auth=True, endpoints=(("GET", "/session"),)),
    ClientRoute("/plants", "Plants", requires_auth=True, endpoints=(("GET", "/scores"),)),
    ClientRoute("/garden", "Garden", requires_auth=True, endpoints=(("GET", "/cosmetics"),)),
    ClientRoute("/profile", "Profile", requires_auth=True, endpoints=(("GET", "/badges"),)),
    ClientRoute("/login", "Login", requires_auth=False),
    ClientRoute("/:catchAll(.*)", "not-found"),
    ClientRoute("/addFriend", "AddFriend", endpoints=(("POST", "/friend/requests/:to"),)),
    ClientRoute("/friends", "Friends", endpoints=(("GET", "/friends"),)),
    ClientRoute("/activity", "Activity"),
    ClientRoute("/social", "Social", endpoints=(("GET", "/friend/requests"),)),
)


def create_guard(router: Router) -> NavigationGuard:
    """Guard over ``CLIENT_ROUTES``, checked against *router*."""
    return NavigationGuard.from_router(
        CLIENT_ROUTES, router, login_route="Login", home_route="Settings"
    )
