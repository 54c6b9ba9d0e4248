"""Garden HTTP endpoints: synchronizations between concepts.

Each handler is a short script over the concepts.  Steps that depend on
one another are consecutive awaits; steps that don't are handed to
``fan_out``.  Every endpoint is listed once in ``ENDPOINTS`` with its
verb, path, auth requirement and (where the handler signature is not
enough) its input schema, and ``register_routes`` installs the table::

    app = App()
    register_routes(app)
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sprout._internal.types import Handler
from sprout.app import App
from sprout.garden import responses
from sprout.garden.concepts import Concepts
from sprout.garden.concepts.posting import PostOptions
from sprout.session import Session, end, get_user, require_logged_out, start
from sprout.sync import FanOutPolicy, SideEffect, fan_out
from sprout.validation import Schema, string

logger = logging.getLogger("sprout.garden")

BADGE_GROUP = "Badges"
COSMETIC_GROUP = "Cosmetics"


# ---------------------------------------------------------------------------
# Shared synchronizations
# ---------------------------------------------------------------------------


def account_effects(concepts: Concepts, user: str) -> list[SideEffect]:
    """Everything a new account needs besides the account itself."""
    return [
        SideEffect("badges", lambda: concepts.badges.create_group(BADGE_GROUP, user)),
        SideEffect("cosmetics", lambda: concepts.cosmetics.create_group(COSMETIC_GROUP, user)),
        SideEffect("streaks", lambda: concepts.streaks.create(user)),
        SideEffect("points", lambda: concepts.points.create(user)),
        SideEffect("seeds", lambda: concepts.seeds.create(user)),
    ]


async def reward(concepts: Concepts, user: str, amount: int) -> None:
    """Credit points and seeds together, or neither."""
    await fan_out(
        [
            SideEffect(
                "points",
                lambda: concepts.points.increase(user, amount),
                lambda: concepts.points.decrease(user, amount),
            ),
            SideEffect(
                "seeds",
                lambda: concepts.seeds.increase(user, amount),
                lambda: concepts.seeds.decrease(user, amount),
            ),
        ],
        policy=FanOutPolicy.ALL_OR_NOTHING,
        identity=user,
    )


# ---------------------------------------------------------------------------
# Session and accounts
# ---------------------------------------------------------------------------


async def get_session_user(session: Session, concepts: Concepts) -> dict[str, Any]:
    user = get_user(session)
    return await concepts.authing.get_user_by_id(user)


async def get_users(concepts: Concepts) -> list[dict[str, Any]]:
    return await concepts.authing.get_users()


async def get_user_by_name(username: str, concepts: Concepts) -> dict[str, Any]:
    return await concepts.authing.get_user_by_username(username)


async def create_user(
    session: Session, concepts: Concepts, username: str, password: str
) -> dict[str, Any]:
    """Create an account and initialize its badges, cosmetics and tallies.

    The initializations are independent of one another and run together.
    A failed one is recorded for reconciliation; the account stands.
    """
    require_logged_out(session)
    created = await concepts.authing.create(username, password)
    user = created["user"]["_id"]
    outcome = await fan_out(
        account_effects(concepts, user),
        policy=FanOutPolicy.RECONCILE,
        log=concepts.reconciliation,
        identity=user,
    )
    if not outcome.ok:
        logger.warning("Account %s created with incomplete setup: %s", user, sorted(outcome.failed))
    return created


async def update_username(session: Session, concepts: Concepts, username: str) -> dict[str, str]:
    user = get_user(session)
    return await concepts.authing.update_username(user, username)


async def update_password(
    session: Session,
    concepts: Concepts,
    currentPassword: str,  # noqa: N803
    newPassword: str,  # noqa: N803
) -> dict[str, str]:
    user = get_user(session)
    return await concepts.authing.update_password(user, currentPassword, newPassword)


async def delete_user(session: Session, concepts: Concepts) -> dict[str, str]:
    user = get_user(session)
    end(session)
    return await concepts.authing.delete(user)


async def log_in(
    session: Session, concepts: Concepts, username: str, password: str
) -> dict[str, str]:
    require_logged_out(session)
    account = await concepts.authing.authenticate(username, password)
    await concepts.authing.update_last_online(account["_id"])
    start(session, account["_id"])
    return {"msg": "Logged in!"}


async def log_out(session: Session) -> dict[str, str]:
    end(session)
    return {"msg": "Logged out!"}


# ---------------------------------------------------------------------------
# Bins and cosmetics
# ---------------------------------------------------------------------------


async def locate_bin(
    session: Session, concepts: Concepts, lat: float, lng: float, type: str
) -> Any:
    user = get_user(session)
    found = await concepts.bins.get_nearest_location(lat, lng, type)
    await reward(concepts, user, 2)
    return found


async def add_bin(
    session: Session, concepts: Concepts, lat: float, lng: float, type: list[str]
) -> dict[str, object]:
    user = get_user(session)
    created = await concepts.bins.create_location(user, lat, lng, type)
    await reward(concepts, user, 10)
    return created


async def remove_bin(session: Session, concepts: Concepts, location: str) -> dict[str, str]:
    user = get_user(session)
    await concepts.bins.delete_location(user, location)
    return {"msg": "Bin removed!"}


async def update_bin(
    session: Session, concepts: Concepts, location: str, lat: float, lng: float
) -> dict[str, object]:
    user = get_user(session)
    return await concepts.bins.change_location(user, lat, lng, location)


async def move_cosmetic(
    session: Session,
    concepts: Concepts,
    lat: float,
    lng: float,
    oldLocation: str,  # noqa: N803
) -> dict[str, object]:
    user = get_user(session)
    moved = await concepts.cosmetic_locations.change_location(user, lat, lng, oldLocation)
    await reward(concepts, user, 5)
    return moved


async def view_badges(session: Session, concepts: Concepts) -> list[str]:
    user = get_user(session)
    group = await concepts.badges.get_group(user, BADGE_GROUP)
    return await concepts.badges.get_items(user, group.id)


async def view_cosmetics(session: Session, concepts: Concepts) -> list[str]:
    user = get_user(session)
    group = await concepts.cosmetics.get_group(user, COSMETIC_GROUP)
    return await concepts.cosmetics.get_items(user, group.id)


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


async def get_posts(concepts: Concepts, author: str | None = None) -> list[dict[str, Any]]:
    if author:
        account = await concepts.authing.get_user_by_username(author)
        posts = await concepts.posting.get_by_author(account["_id"])
    else:
        posts = await concepts.posting.get_posts()
    return await responses.posts(concepts, posts)


async def create_post(
    session: Session, concepts: Concepts, content: str, options: PostOptions | None = None
) -> dict[str, Any]:
    user = get_user(session)
    created = await concepts.posting.create(user, content, options)
    return {"msg": created["msg"], "post": await responses.post(concepts, created["post"])}


async def update_post(
    session: Session,
    concepts: Concepts,
    id: str,
    content: str | None = None,
    options: PostOptions | None = None,
) -> dict[str, str]:
    user = get_user(session)
    await concepts.posting.assert_author_is_user(id, user)
    return await concepts.posting.update(id, content, options)


async def delete_post(session: Session, concepts: Concepts, id: str) -> dict[str, str]:
    user = get_user(session)
    await concepts.posting.assert_author_is_user(id, user)
    return await concepts.posting.delete(id)


# ---------------------------------------------------------------------------
# Friends
# ---------------------------------------------------------------------------


async def get_friends(session: Session, concepts: Concepts) -> list[str]:
    user = get_user(session)
    return await concepts.authing.ids_to_usernames(await concepts.friending.get_friends(user))


async def remove_friend(session: Session, concepts: Concepts, friend: str) -> dict[str, str]:
    user = get_user(session)
    other = await concepts.authing.get_user_by_username(friend)
    return await concepts.friending.remove_friend(user, other["_id"])


async def get_requests(session: Session, concepts: Concepts) -> list[dict[str, Any]]:
    user = get_user(session)
    return await responses.friend_requests(concepts, await concepts.friending.get_requests(user))


async def send_friend_request(session: Session, concepts: Concepts, to: str) -> dict[str, str]:
    user = get_user(session)
    recipient = await concepts.authing.get_user_by_username(to)
    return await concepts.friending.send_request(user, recipient["_id"])


async def remove_friend_request(session: Session, concepts: Concepts, to: str) -> dict[str, str]:
    user = get_user(session)
    recipient = await concepts.authing.get_user_by_username(to)
    return await concepts.friending.remove_request(user, recipient["_id"])


async def accept_friend_request(session: Session, concepts: Concepts, from_: str) -> dict[str, str]:
    user = get_user(session)
    sender = await concepts.authing.get_user_by_username(from_)
    return await concepts.friending.accept_request(sender["_id"], user)


async def reject_friend_request(session: Session, concepts: Concepts, from_: str) -> dict[str, str]:
    user = get_user(session)
    sender = await concepts.authing.get_user_by_username(from_)
    return await concepts.friending.reject_request(sender["_id"], user)


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------


async def classify(session: Session, concepts: Concepts) -> dict[str, str]:
    user = get_user(session)
    await concepts.points.increase(user, 4)
    await concepts.seeds.increase(user, 4)
    return {"msg": "Classified!"}


async def get_scores(session: Session, concepts: Concepts) -> dict[str, int]:
    user = get_user(session)
    return {
        "points": await concepts.points.get_value(user),
        "seeds": await concepts.seeds.get_value(user),
        "streaks": await concepts.streaks.get_value(user),
    }


async def purchase(session: Session, concepts: Concepts) -> dict[str, str]:
    user = get_user(session)
    await concepts.seeds.decrease(user, 2)
    return {"msg": "Purchased!"}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Endpoint:
    """One row of the endpoint table."""

    verb: str
    path: str
    handler: Handler
    auth_required: bool = False
    schema: Schema | None = None
    status: int = 200


ENDPOINTS: tuple[Endpoint, ...] = (
    Endpoint("GET", "/session", get_session_user, auth_required=True),
    Endpoint("GET", "/users", get_users),
    Endpoint(
        "GET",
        "/users/:username",
        get_user_by_name,
        schema=Schema({"username": string(min_length=1)}),
    ),
    Endpoint("POST", "/users", create_user, status=201),
    Endpoint("PATCH", "/users/username", update_username, auth_required=True),
    Endpoint("PATCH", "/users/password", update_password, auth_required=True),
    Endpoint("DELETE", "/users", delete_user, auth_required=True),
    Endpoint("POST", "/login", log_in),
    Endpoint("POST", "/logout", log_out, auth_required=True),
    Endpoint("GET", "/bin", locate_bin, auth_required=True),
    Endpoint("POST", "/bin", add_bin, auth_required=True),
    Endpoint("DELETE", "/bin", remove_bin, auth_required=True),
    Endpoint("PUT", "/bin", update_bin, auth_required=True),
    Endpoint("PUT", "/cosmetics/move", move_cosmetic, auth_required=True),
    Endpoint("GET", "/badges", view_badges, auth_required=True),
    Endpoint("GET", "/cosmetics", view_cosmetics, auth_required=True),
    Endpoint("GET", "/posts", get_posts, schema=Schema({"author": string(optional=True)})),
    Endpoint("POST", "/posts", create_post, auth_required=True),
    Endpoint("PATCH", "/posts/:id", update_post, auth_required=True),
    Endpoint("DELETE", "/posts/:id", delete_post, auth_required=True),
    Endpoint("GET", "/friends", get_friends, auth_required=True),
    Endpoint("DELETE", "/friends/:friend", remove_friend, auth_required=True),
    Endpoint("GET", "/friend/requests", get_requests, auth_required=True),
    Endpoint("POST", "/friend/requests/:to", send_friend_request, auth_required=True),
    Endpoint("DELETE", "/friend/requests/:to", remove_friend_request, auth_required=True),
    Endpoint("PUT", "/friend/accept/:from", accept_friend_request, auth_required=True),
    Endpoint("PUT", "/friend/reject/:from", reject_friend_request, auth_required=True),
    Endpoint("POST", "/classify", classify, auth_required=True),
    Endpoint("GET", "/scores", get_scores, auth_required=True),
    Endpoint("POST", "/purchase", purchase, auth_required=True),
)


def register_routes(app: App, endpoints: Iterable[Endpoint] = ENDPOINTS) -> None:
    """Install every endpoint of the table on *app*."""
    for endpoint in endpoints:
        app.add_route(
            endpoint.verb,
            endpoint.path,
            endpoint.handler,
            schema=endpoint.schema,
            auth_required=endpoint.auth_required,
            status=endpoint.status,
        )
