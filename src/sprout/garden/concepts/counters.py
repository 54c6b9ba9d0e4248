"""Per-user tallies: points, seeds, streaks.

One ``Counter`` instance per tally.  A user's counter must be created
(at account creation) before it can move.
"""

import threading

from sprout.errors import Conflict, NotFound


class Counter:
    """A named non-negative integer per user."""

    __slots__ = ("_lock", "_values", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._values: dict[str, int] = {}
        self._lock = threading.Lock()

    async def create(self, user: str, initial: int = 0) -> dict[str, str]:
        with self._lock:
            if user in self._values:
                raise Conflict(f"{self.name} for user {user} already exist!")
            self._values[user] = initial
        return {"msg": f"{self.name} created!"}

    async def get_value(self, user: str) -> int:
        with self._lock:
            return self._require(user)

    async def increase(self, user: str, amount: int) -> int:
        with self._lock:
            value = self._require(user) + amount
            self._values[user] = value
        return value

    async def decrease(self, user: str, amount: int) -> int:
        """Take *amount* away.

        Raises:
            Conflict: The balance would go negative.
        """
        with self._lock:
            current = self._require(user)
            if current < amount:
                raise Conflict(f"Not enough {self.name.lower()}: have {current}, need {amount}")
            self._values[user] = current - amount
            return current - amount

    async def delete(self, user: str) -> None:
        with self._lock:
            self._values.pop(user, None)

    def _require(self, user: str) -> int:
        try:
            return self._values[user]
        except KeyError:
            raise NotFound(f"{self.name} for user {user} not found!") from None
