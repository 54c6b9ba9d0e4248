"""Named per-user collections of items (badges, cosmetics)."""

import threading
import uuid
from dataclasses import dataclass, field

from sprout.errors import Conflict, Forbidden, NotFound


@dataclass(slots=True)
class Group:
    id: str
    name: str
    owner: str
    items: list[str] = field(default_factory=list)


class Grouping:
    """In-memory group store.  A user holds at most one group per name."""

    __slots__ = ("_groups", "_lock", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._groups: dict[str, Group] = {}
        self._lock = threading.Lock()

    async def create_group(self, name: str, owner: str) -> Group:
        with self._lock:
            if any(g.owner == owner and g.name == name for g in self._groups.values()):
                raise Conflict(f"Group {name!r} already exists for {owner}!")
            group = Group(uuid.uuid4().hex, name, owner)
            self._groups[group.id] = group
        return group

    async def get_group(self, owner: str, name: str) -> Group:
        with self._lock:
            for group in self._groups.values():
                if group.owner == owner and group.name == name:
                    return group
        raise NotFound(f"Group {name!r} does not exist for {owner}!")

    async def add_item(self, owner: str, group_id: str, item: str) -> None:
        with self._lock:
            self._owned(owner, group_id).items.append(item)

    async def get_items(self, owner: str, group_id: str) -> list[str]:
        with self._lock:
            return list(self._owned(owner, group_id).items)

    def _owned(self, owner: str, group_id: str) -> Group:
        # Caller holds the lock
        group = self._groups.get(group_id)
        if group is None:
            raise NotFound(f"Group {group_id} does not exist!")
        if group.owner != owner:
            raise Forbidden(f"{owner} does not own group {group_id}!")
        return group
