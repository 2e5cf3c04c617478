"""Live View — a projection bound to a cache, recomputed on every change.

Invariants:
    - view is always project(cache.snapshot, criteria) for the current pair
    - Recompute is synchronous, inside the cache's notification round
    - Setting criteria equal to the current ones does not recompute or notify
    - close() detaches from the cache; the last view stays readable
"""

from collections.abc import Callable
from dataclasses import replace
from typing import Generic, TypeVar

from savings_client.core.entity_cache import EntityCache, Listener, Subscription

S = TypeVar("S")
C = TypeVar("C")
V = TypeVar("V")


class LiveView(Generic[S, C, V]):
    """Holds a derived, read-only snapshot; owns no mutable copy of the records."""

    def __init__(
        self,
        source: EntityCache[S],
        project: Callable[[S, C], V],
        criteria: C,
    ):
        self._source = source
        self._project = project
        self._criteria = criteria
        self._output: EntityCache[V] = EntityCache(
            source.kind, project(source.snapshot, criteria),
        )
        self._source_subscription = source.subscribe(self._on_snapshot)

    @property
    def view(self) -> V:
        return self._output.snapshot

    @property
    def criteria(self) -> C:
        return self._criteria

    def set_criteria(self, criteria: C) -> None:
        if criteria == self._criteria:
            return
        self._criteria = criteria
        self._recompute(self._source.snapshot)

    def update_criteria(self, **changes) -> None:
        """Replace individual fields of a dataclass criteria object."""
        self.set_criteria(replace(self._criteria, **changes))

    def subscribe(self, listener: Listener, *, replay: bool = False) -> Subscription:
        return self._output.subscribe(listener, replay=replay)

    def close(self) -> None:
        self._source_subscription.unsubscribe()

    def __enter__(self) -> "LiveView[S, C, V]":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _on_snapshot(self, snapshot: S) -> None:
        self._recompute(snapshot)

    def _recompute(self, snapshot: S) -> None:
        self._output.replace(self._project(snapshot, self._criteria))
