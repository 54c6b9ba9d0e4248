"""Places on the map, each tagged with the kinds of thing found there.

The garden keeps two instances: recycling bins (tagged with the waste
types they accept) and placed cosmetics.
"""

import math
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from sprout.errors import Forbidden, NotFound

_EARTH_RADIUS_KM = 6371.0


@dataclass(slots=True)
class Location:
    id: str
    owner: str
    lat: float
    lng: float
    types: frozenset[str]


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class Locating:
    """In-memory location store."""

    __slots__ = ("_lock", "_locations", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._locations: dict[str, Location] = {}
        self._lock = threading.Lock()

    async def create_location(
        self, owner: str, lat: float, lng: float, types: Iterable[str] = ()
    ) -> dict[str, object]:
        location = Location(uuid.uuid4().hex, owner, lat, lng, frozenset(types))
        with self._lock:
            self._locations[location.id] = location
        return {"msg": f"{self.name} created!", "location": location}

    async def get_nearest_location(self, lat: float, lng: float, type: str) -> Location:
        """Closest location tagged *type*.

        Raises:
            NotFound: Nothing carries that tag.
        """
        with self._lock:
            candidates = [loc for loc in self._locations.values() if type in loc.types]
        if not candidates:
            raise NotFound(f"No {self.name.lower()} found for type {type!r}!")
        return min(candidates, key=lambda loc: distance_km(lat, lng, loc.lat, loc.lng))

    async def change_location(
        self, owner: str, lat: float, lng: float, location_id: str
    ) -> dict[str, object]:
        with self._lock:
            location = self._owned(owner, location_id)
            location.lat = lat
            location.lng = lng
        return {"msg": f"{self.name} moved!", "location": location}

    async def delete_location(self, owner: str, location_id: str) -> None:
        with self._lock:
            self._owned(owner, location_id)
            del self._locations[location_id]

    def _owned(self, owner: str, location_id: str) -> Location:
        # Caller holds the lock
        location = self._locations.get(location_id)
        if location is None:
            raise NotFound(f"{self.name} {location_id} does not exist!")
        if location.owner != owner:
            raise Forbidden(f"{owner} does not own {self.name.lower()} {location_id}!")
        return location
