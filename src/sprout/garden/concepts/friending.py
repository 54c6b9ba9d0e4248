"""Friend requests and friendships between users.

A request moves from ``pending`` to ``accepted`` or ``rejected``; accepting
one creates the friendship.  Identities are opaque user ids.
"""

import threading
import uuid
from dataclasses import dataclass
from enum import StrEnum

from sprout.errors import Conflict, Forbidden, NotFound


class RequestStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(slots=True)
class FriendRequest:
    id: str
    sender: str
    recipient: str
    status: RequestStatus = RequestStatus.PENDING


class Friending:
    """In-memory friendship graph."""

    __slots__ = ("_friendships", "_lock", "_requests")

    def __init__(self) -> None:
        self._requests: list[FriendRequest] = []
        self._friendships: set[frozenset[str]] = set()
        self._lock = threading.Lock()

    async def get_requests(self, user: str) -> list[FriendRequest]:
        """Requests sent or received by *user*."""
        with self._lock:
            return [r for r in self._requests if user in (r.sender, r.recipient)]

    async def send_request(self, sender: str, recipient: str) -> dict[str, str]:
        """Raises ``Forbidden`` for self-requests, ``Conflict`` for duplicates or friends."""
        if sender == recipient:
            raise Forbidden("Cannot send a friend request to yourself!")
        with self._lock:
            if frozenset((sender, recipient)) in self._friendships:
                raise Conflict(f"{sender} and {recipient} are already friends!")
            pair = {sender, recipient}
            for request in self._requests:
                pending = request.status is RequestStatus.PENDING
                if pending and {request.sender, request.recipient} == pair:
                    msg = f"Friend request between {sender} and {recipient} already exists!"
                    raise Conflict(msg)
            self._requests.append(FriendRequest(uuid.uuid4().hex, sender, recipient))
        return {"msg": "Sent request!"}

    async def remove_request(self, sender: str, recipient: str) -> dict[str, str]:
        with self._lock:
            request = self._pending(sender, recipient)
            self._requests.remove(request)
        return {"msg": "Removed request!"}

    async def accept_request(self, sender: str, recipient: str) -> dict[str, str]:
        with self._lock:
            self._pending(sender, recipient).status = RequestStatus.ACCEPTED
            self._friendships.add(frozenset((sender, recipient)))
        return {"msg": "Accepted request!"}

    async def reject_request(self, sender: str, recipient: str) -> dict[str, str]:
        with self._lock:
            self._pending(sender, recipient).status = RequestStatus.REJECTED
        return {"msg": "Rejected request!"}

    async def get_friends(self, user: str) -> list[str]:
        with self._lock:
            return sorted(next(iter(pair - {user})) for pair in self._friendships if user in pair)

    async def remove_friend(self, user: str, friend: str) -> dict[str, str]:
        pair = frozenset((user, friend))
        with self._lock:
            if pair not in self._friendships:
                raise NotFound(f"Friendship between {user} and {friend} does not exist!")
            self._friendships.remove(pair)
        return {"msg": "Unfriended!"}

    def _pending(self, sender: str, recipient: str) -> FriendRequest:
        # Caller holds the lock
        for request in self._requests:
            if (
                request.sender == sender
                and request.recipient == recipient
                and request.status is RequestStatus.PENDING
            ):
                return request
        raise NotFound(f"Friend request from {sender} to {recipient} does not exist!")
