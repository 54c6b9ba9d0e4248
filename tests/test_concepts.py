"""Tests for the garden concepts, each on its own."""

import pytest
from argon2 import PasswordHasher

from sprout.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationFailed
from sprout.garden.concepts import Authing, Counter, Friending, Grouping, Locating, Posting
from sprout.garden.concepts.authing import DELETED_USER
from sprout.garden.concepts.friending import RequestStatus
from sprout.garden.concepts.locating import distance_km
from sprout.security import low_cost_hasher, needs_rehash


@pytest.fixture
def authing() -> Authing:
    return Authing(low_cost_hasher())


class TestCounter:
    async def test_create_and_move(self) -> None:
        points = Counter("Points")
        assert await points.create("u1") == {"msg": "Points created!"}
        assert await points.increase("u1", 10) == 10
        assert await points.decrease("u1", 4) == 6
        assert await points.get_value("u1") == 6

    async def test_create_twice(self) -> None:
        points = Counter("Points")
        await points.create("u1")
        with pytest.raises(Conflict):
            await points.create("u1")

    async def test_unknown_user(self) -> None:
        with pytest.raises(NotFound, match="Seeds for user u1 not found"):
            await Counter("Seeds").get_value("u1")

    async def test_cannot_go_negative(self) -> None:
        seeds = Counter("Seeds")
        await seeds.create("u1", initial=1)
        with pytest.raises(Conflict, match="Not enough seeds"):
            await seeds.decrease("u1", 2)
        assert await seeds.get_value("u1") == 1

    async def test_delete(self) -> None:
        streaks = Counter("Streaks")
        await streaks.create("u1")
        await streaks.delete("u1")
        await streaks.delete("u1")
        with pytest.raises(NotFound):
            await streaks.get_value("u1")


class TestAuthing:
    async def test_create_returns_public_view(self, authing: Authing) -> None:
        created = await authing.create("alice", "pw")
        assert created["msg"] == "User created successfully!"
        assert set(created["user"]) == {"_id", "username", "lastOnline"}
        assert created["user"]["username"] == "alice"

    async def test_empty_credentials(self, authing: Authing) -> None:
        with pytest.raises(ValidationFailed) as exc_info:
            await authing.create("", "")
        assert [e.path for e in exc_info.value.details] == ["username", "password"]

    async def test_duplicate_username(self, authing: Authing) -> None:
        await authing.create("alice", "pw")
        with pytest.raises(Conflict, match="alice already exists"):
            await authing.create("alice", "other")

    async def test_authenticate(self, authing: Authing) -> None:
        created = await authing.create("alice", "pw")
        account = await authing.authenticate("alice", "pw")
        assert account["_id"] == created["user"]["_id"]

    @pytest.mark.parametrize(("username", "password"), [("alice", "wrong"), ("nobody", "pw")])
    async def test_authenticate_rejects(
        self, authing: Authing, username: str, password: str
    ) -> None:
        await authing.create("alice", "pw")
        with pytest.raises(Unauthenticated, match="Username or password is incorrect"):
            await authing.authenticate(username, password)

    async def test_authenticate_upgrades_outdated_hash(self) -> None:
        authing = Authing(PasswordHasher(time_cost=1, memory_cost=512, parallelism=1))
        alice = (await authing.create("alice", "pw"))["user"]
        current = low_cost_hasher()
        authing._hasher = current
        old_hash = authing._users[alice["_id"]].password_hash
        assert needs_rehash(old_hash, hasher=current)

        await authing.authenticate("alice", "pw")

        new_hash = authing._users[alice["_id"]].password_hash
        assert new_hash != old_hash
        assert not needs_rehash(new_hash, hasher=current)
        await authing.authenticate("alice", "pw")

    async def test_lookups(self, authing: Authing) -> None:
        user = (await authing.create("alice", "pw"))["user"]
        assert await authing.get_user_by_id(user["_id"]) == user
        assert await authing.get_user_by_username("alice") == user
        assert await authing.get_users() == [user]
        assert await authing.get_users("bob") == []
        with pytest.raises(NotFound):
            await authing.get_user_by_username("bob")
        with pytest.raises(NotFound, match="User not found!"):
            await authing.get_user_by_id("missing")

    async def test_ids_to_usernames(self, authing: Authing) -> None:
        user = (await authing.create("alice", "pw"))["user"]
        assert await authing.ids_to_usernames([user["_id"], "gone"]) == ["alice", DELETED_USER]

    async def test_update_username(self, authing: Authing) -> None:
        alice = (await authing.create("alice", "pw"))["user"]
        await authing.create("bob", "pw")
        with pytest.raises(Conflict):
            await authing.update_username(alice["_id"], "bob")
        await authing.update_username(alice["_id"], "alicia")
        assert (await authing.get_user_by_id(alice["_id"]))["username"] == "alicia"

    async def test_update_password(self, authing: Authing) -> None:
        alice = (await authing.create("alice", "pw"))["user"]
        with pytest.raises(Forbidden, match="current password is wrong"):
            await authing.update_password(alice["_id"], "nope", "new")
        await authing.update_password(alice["_id"], "pw", "new")
        await authing.authenticate("alice", "new")
        with pytest.raises(Unauthenticated):
            await authing.authenticate("alice", "pw")

    async def test_update_password_requires_new_one(self, authing: Authing) -> None:
        alice = (await authing.create("alice", "pw"))["user"]
        with pytest.raises(ValidationFailed):
            await authing.update_password(alice["_id"], "pw", "")

    async def test_last_online(self, authing: Authing) -> None:
        alice = (await authing.create("alice", "pw"))["user"]
        assert alice["lastOnline"] is None
        await authing.update_last_online(alice["_id"])
        assert (await authing.get_user_by_id(alice["_id"]))["lastOnline"] is not None

    async def test_delete(self, authing: Authing) -> None:
        alice = (await authing.create("alice", "pw"))["user"]
        assert await authing.delete(alice["_id"]) == {"msg": "User deleted!"}
        with pytest.raises(NotFound):
            await authing.delete(alice["_id"])


class TestFriending:
    async def test_accept_creates_friendship(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        await friending.accept_request("a", "b")
        assert await friending.get_friends("a") == ["b"]
        assert await friending.get_friends("b") == ["a"]
        [request] = await friending.get_requests("b")
        assert request.status is RequestStatus.ACCEPTED

    async def test_self_request(self) -> None:
        with pytest.raises(Forbidden):
            await Friending().send_request("a", "a")

    async def test_duplicate_pending_either_direction(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        with pytest.raises(Conflict):
            await friending.send_request("b", "a")

    async def test_already_friends(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        await friending.accept_request("a", "b")
        with pytest.raises(Conflict, match="already friends"):
            await friending.send_request("b", "a")

    async def test_reject_allows_new_request(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        await friending.reject_request("a", "b")
        assert await friending.get_friends("a") == []
        await friending.send_request("a", "b")

    async def test_remove_request(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        await friending.remove_request("a", "b")
        assert await friending.get_requests("a") == []
        with pytest.raises(NotFound):
            await friending.remove_request("a", "b")

    async def test_only_recipient_direction_accepts(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        with pytest.raises(NotFound):
            await friending.accept_request("b", "a")

    async def test_remove_friend(self) -> None:
        friending = Friending()
        await friending.send_request("a", "b")
        await friending.accept_request("a", "b")
        assert await friending.remove_friend("b", "a") == {"msg": "Unfriended!"}
        with pytest.raises(NotFound):
            await friending.remove_friend("a", "b")


class TestPosting:
    async def test_create_and_list(self) -> None:
        posting = Posting()
        created = await posting.create("u1", "hello", {"backgroundColor": "green"})
        post = created["post"]
        assert created["msg"] == "Post successfully created!"
        assert await posting.get_posts() == [post]
        assert await posting.get_by_author("u1") == [post]
        assert await posting.get_by_author("u2") == []

    async def test_update_keeps_unset_fields(self) -> None:
        posting = Posting()
        post = (await posting.create("u1", "hello", {"backgroundColor": "green"}))["post"]
        await posting.update(post.id, content="bye")
        assert post.content == "bye"
        assert post.options == {"backgroundColor": "green"}

    async def test_author_check(self) -> None:
        posting = Posting()
        post = (await posting.create("u1", "hello"))["post"]
        await posting.assert_author_is_user(post.id, "u1")
        with pytest.raises(Forbidden):
            await posting.assert_author_is_user(post.id, "u2")
        with pytest.raises(NotFound):
            await posting.assert_author_is_user("missing", "u1")

    async def test_delete(self) -> None:
        posting = Posting()
        post = (await posting.create("u1", "hello"))["post"]
        await posting.delete(post.id)
        assert await posting.get_posts() == []


class TestLocating:
    async def test_nearest_of_type(self) -> None:
        bins = Locating("Bin")
        await bins.create_location("u1", 42.36, -71.09, ["paper"])
        near = (await bins.create_location("u1", 42.35, -71.06, ["paper", "glass"]))["location"]
        await bins.create_location("u1", 42.35, -71.06, ["metal"])
        found = await bins.get_nearest_location(42.35, -71.05, "paper")
        assert found.id == near.id

    async def test_no_match(self) -> None:
        with pytest.raises(NotFound, match="No bin found for type 'glass'"):
            await Locating("Bin").get_nearest_location(0.0, 0.0, "glass")

    async def test_change_and_delete_need_owner(self) -> None:
        bins = Locating("Bin")
        location = (await bins.create_location("u1", 1.0, 1.0, ["paper"]))["location"]
        with pytest.raises(Forbidden):
            await bins.change_location("u2", 2.0, 2.0, location.id)
        moved = await bins.change_location("u1", 2.0, 3.0, location.id)
        assert (moved["location"].lat, moved["location"].lng) == (2.0, 3.0)
        with pytest.raises(Forbidden):
            await bins.delete_location("u2", location.id)
        await bins.delete_location("u1", location.id)
        with pytest.raises(NotFound):
            await bins.delete_location("u1", location.id)

    def test_distance(self) -> None:
        assert distance_km(0.0, 0.0, 0.0, 0.0) == 0.0
        assert distance_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(111.19, rel=1e-3)


class TestGrouping:
    async def test_one_group_per_name(self) -> None:
        badges = Grouping("Badges")
        await badges.create_group("Badges", "u1")
        await badges.create_group("Badges", "u2")
        with pytest.raises(Conflict):
            await badges.create_group("Badges", "u1")

    async def test_items(self) -> None:
        badges = Grouping("Badges")
        group = await badges.create_group("Badges", "u1")
        assert await badges.get_group("u1", "Badges") is group
        await badges.add_item("u1", group.id, "first-bin")
        assert await badges.get_items("u1", group.id) == ["first-bin"]

    async def test_owner_only(self) -> None:
        badges = Grouping("Badges")
        group = await badges.create_group("Badges", "u1")
        with pytest.raises(Forbidden):
            await badges.get_items("u2", group.id)
        with pytest.raises(NotFound):
            await badges.get_group("u2", "Badges")
