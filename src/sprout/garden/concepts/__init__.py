"""Domain modules of the garden.

Each concept owns one slice of state and knows nothing of the others;
the route handlers in ``sprout.garden.routes`` are the only place they
meet.  ``Concepts`` bundles one instance of each for injection::

    concepts = Concepts.in_memory()
    app.provide(Concepts, lambda: concepts)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from argon2 import PasswordHasher

from sprout.garden.concepts.authing import Authing
from sprout.garden.concepts.counters import Counter
from sprout.garden.concepts.friending import Friending
from sprout.garden.concepts.grouping import Grouping
from sprout.garden.concepts.locating import Locating
from sprout.garden.concepts.posting import PostOptions, Posting
from sprout.sync import ReconciliationLog


@dataclass(frozen=True, slots=True)
class Concepts:
    authing: Authing
    friending: Friending
    posting: Posting
    bins: Locating
    cosmetic_locations: Locating
    badges: Grouping
    cosmetics: Grouping
    points: Counter
    seeds: Counter
    streaks: Counter
    reconciliation: ReconciliationLog = field(default_factory=ReconciliationLog)

    @classmethod
    def in_memory(cls, hasher: PasswordHasher | None = None) -> Concepts:
        """Fresh, empty instances of every concept."""
        return cls(
            authing=Authing(hasher),
            friending=Friending(),
            posting=Posting(),
            bins=Locating("Bin"),
            cosmetic_locations=Locating("Cosmetic"),
            badges=Grouping("Badges"),
            cosmetics=Grouping("Cosmetics"),
            points=Counter("Points"),
            seeds=Counter("Seeds"),
            streaks=Counter("Streaks"),
        )


__all__ = [
    "Authing",
    "Concepts",
    "Counter",
    "Friending",
    "Grouping",
    "Locating",
    "PostOptions",
    "Posting",
]
