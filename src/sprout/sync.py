"""Fan-out synchronization across independent domain modules.

A synchronization handler that must touch several modules which do not
know about each other (creating an account initializes points, seeds,
streaks, badges and cosmetics) describes each touch as a ``SideEffect``
and hands them to ``fan_out``::

    outcome = await fan_out(
        [
            SideEffect("points", lambda: points.init(user)),
            SideEffect("seeds", lambda: seeds.init(user)),
        ],
        policy=FanOutPolicy.RECONCILE,
        log=reconciliation,
        identity=user,
    )

The effects run concurrently in an ``anyio`` task group and ``fan_out``
returns only after every effect has settled.  What happens when one of
them fails is the policy's business:

``RECONCILE``
    Every effect runs to completion.  Failures are recorded in the
    ``ReconciliationLog`` and logged at WARNING; nothing is retried and
    the caller's primary operation stands.

``ALL_OR_NOTHING``
    The first failure cancels the siblings still running, completed
    effects are compensated in reverse completion order, and
    ``UpstreamFailure`` is raised.

Dependent steps need no helper: write them as consecutive awaits, and a
failure in an earlier one keeps the later ones from running.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from time import time
from typing import Any

import anyio

from sprout._internal.invoke import invoke
from sprout.errors import UpstreamFailure

logger = logging.getLogger("sprout.sync")


class FanOutPolicy(StrEnum):
    RECONCILE = "reconcile"
    ALL_OR_NOTHING = "all_or_nothing"


@dataclass(frozen=True, slots=True)
class SideEffect:
    """One independent call into a domain module.

    ``run`` and ``compensate`` are zero-argument callables, sync or async.
    ``compensate`` undoes a completed ``run`` and is only used by
    ``ALL_OR_NOTHING``.
    """

    name: str
    run: Callable[[], Any]
    compensate: Callable[[], Any] | None = None


@dataclass(frozen=True, slots=True)
class SynchronizationOutcome:
    """How each effect of a fan-out settled."""

    succeeded: tuple[str, ...] = ()
    failed: dict[str, Exception] = field(default_factory=dict)
    cancelled: tuple[str, ...] = ()
    results: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled


@dataclass(frozen=True, slots=True)
class ReconciliationEntry:
    """A failed effect awaiting out-of-band repair."""

    effect: str
    error: str
    identity: str | None = None
    timestamp: float = field(default_factory=time)


class ReconciliationLog:
    """Append-only record of effects that failed under ``RECONCILE``.

    Thread-safe; shared by every request that fans out.
    """

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: list[ReconciliationEntry] = []
        self._lock = threading.Lock()

    def record(
        self, effect: str, error: Exception, identity: str | None = None
    ) -> ReconciliationEntry:
        entry = ReconciliationEntry(
            effect=effect,
            error=f"{type(error).__name__}: {error}",
            identity=identity,
        )
        with self._lock:
            self._entries.append(entry)
        logger.warning(
            "Effect %r failed for %s and needs reconciliation: %s",
            effect,
            identity or "<unknown>",
            entry.error,
        )
        return entry

    @property
    def entries(self) -> tuple[ReconciliationEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def for_identity(self, identity: str) -> tuple[ReconciliationEntry, ...]:
        """Entries recorded against *identity*."""
        return tuple(e for e in self.entries if e.identity == identity)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


async def fan_out(
    effects: Iterable[SideEffect],
    *,
    policy: FanOutPolicy = FanOutPolicy.RECONCILE,
    log: ReconciliationLog | None = None,
    identity: str | None = None,
) -> SynchronizationOutcome:
    """Run *effects* concurrently and settle them according to *policy*.

    Raises:
        ValueError: Two effects share a name.
        UpstreamFailure: An effect failed under ``ALL_OR_NOTHING``.
    """
    pending = list(effects)
    names = [e.name for e in pending]
    if len(set(names)) != len(names):
        msg = f"Effect names must be unique, got {names}"
        raise ValueError(msg)

    results: dict[str, Any] = {}
    failed: dict[str, Exception] = {}
    completed: list[SideEffect] = []

    async with anyio.create_task_group() as tg:

        async def _run(effect: SideEffect) -> None:
            try:
                results[effect.name] = await invoke(effect.run)
            except Exception as exc:
                failed[effect.name] = exc
                if policy is FanOutPolicy.ALL_OR_NOTHING:
                    tg.cancel_scope.cancel()
                return
            completed.append(effect)

        for effect in pending:
            tg.start_soon(_run, effect, name=f"effect:{effect.name}")

    outcome = SynchronizationOutcome(
        succeeded=tuple(e.name for e in completed),
        failed=failed,
        cancelled=tuple(n for n in names if n not in results and n not in failed),
        results=results,
    )

    if not failed:
        return outcome

    if policy is FanOutPolicy.RECONCILE:
        for name, exc in failed.items():
            if log is not None:
                log.record(name, exc, identity)
            else:
                logger.warning("Effect %r failed for %s: %s", name, identity or "<unknown>", exc)
        return outcome

    await _compensate(completed)
    first_name, first_exc = next(iter(failed.items()))
    msg = f"{first_name} failed: {first_exc}"
    raise UpstreamFailure(msg) from first_exc


async def _compensate(completed: list[SideEffect]) -> None:
    """Undo completed effects, newest first.

    A failing compensation is logged and the rest still run; the caller
    is already raising.
    """
    for effect in reversed(completed):
        if effect.compensate is None:
            continue
        try:
            await invoke(effect.compensate)
        except Exception:
            logger.exception("Compensation for effect %r failed", effect.name)
