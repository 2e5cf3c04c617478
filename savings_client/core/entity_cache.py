"""Entity Cache — observable, atomically-replaced holder of one entity collection or value.

Invariants:
    - Every replace or incremental mutation notifies subscribers synchronously,
      in subscription order, with the new snapshot
    - Listener list is captured when a round starts: a subscriber added during
      notification is first invoked on the next round
    - A mutation issued from inside a listener is queued and delivered after the
      current round (no re-entrant delivery); rounds are delivered in commit order
    - Collection snapshots are tuples, never mutated in place
    - No-op mutations (stale update/delete) do not notify

Design Decisions:
    - Plain callbacks over an event bus: one cache, one stream, no topic routing
    - Listener exceptions are logged and the round continues to the next listener
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from typing import Generic, Protocol, TypeVar

from savings_client.core.domain_types import EntityKind

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[T], None]


class Identified(Protocol):
    """Any record the collection cache can key by id."""
    @property
    def id(self) -> int: ...


R = TypeVar("R", bound=Identified)


class _Unset:
    """Sentinel for the single-value cache holding nothing."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


class Subscription:
    """Handle returned by subscribe(); unsubscribe() is idempotent."""

    def __init__(self, cache: "EntityCache", listener: Listener):
        self._cache = cache
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._cache._detach(self)

    def _deliver(self, snapshot) -> None:
        self._listener(snapshot)


class EntityCache(Generic[T]):
    """Holds the last known authoritative value for one entity kind."""

    def __init__(self, kind: EntityKind, initial: T):
        self.kind = kind
        self._value: T = initial
        self._subscriptions: list[Subscription] = []
        self._pending: deque = deque()
        self._delivering = False

    @property
    def snapshot(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener, *, replay: bool = False) -> Subscription:
        """Register listener. With replay=True it also receives the current snapshot now."""
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        if replay:
            self._safe_deliver(subscription, self._value)
        return subscription

    def replace(self, value: T) -> None:
        """Last writer wins, no merging with the previous value."""
        self._commit(value)

    def _commit(self, value: T) -> None:
        self._value = value
        self._pending.append(value)
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                snapshot = self._pending.popleft()
                for subscription in list(self._subscriptions):
                    if subscription.active:
                        self._safe_deliver(subscription, snapshot)
        finally:
            self._delivering = False

    def _safe_deliver(self, subscription: Subscription, snapshot) -> None:
        try:
            subscription._deliver(snapshot)
        except Exception:
            logger.exception(
                "Cache listener failed",
                extra={"entity_kind": self.kind.value},
            )

    def _detach(self, subscription: Subscription) -> None:
        self._subscriptions.remove(subscription)


class CollectionCache(EntityCache[tuple[R, ...]]):
    """Cache of records keyed by id, with incremental mutators."""

    def __init__(self, kind: EntityKind, records: Iterable[R] = ()):
        super().__init__(kind, tuple(records))

    def replace(self, value: Iterable[R]) -> None:
        self._commit(tuple(value))

    def find(self, record_id: int) -> R | None:
        for record in self._value:
            if record.id == record_id:
                return record
        return None

    def prepend(self, record: R) -> None:
        self._commit((record, *self._value))

    def append(self, record: R) -> None:
        self._commit((*self._value, record))

    def replace_record(self, record: R) -> bool:
        """Swap the record with the same id. Returns False (and stays silent) on no match."""
        if self.find(record.id) is None:
            return False
        self._commit(tuple(record if r.id == record.id else r for r in self._value))
        return True

    def remove_record(self, record_id: int) -> R | None:
        """Drop the record with record_id. Returns it, or None when absent."""
        removed = self.find(record_id)
        if removed is None:
            return None
        self._commit(tuple(r for r in self._value if r.id != record_id))
        return removed

    def map_records(self, transform: Callable[[R], R]) -> None:
        self._commit(tuple(transform(r) for r in self._value))

    def __len__(self) -> int:
        return len(self._value)


class CounterCache(EntityCache[int]):
    """Non-negative counter. Tracks local adjustments since the last server count."""

    def __init__(self, kind: EntityKind, initial: int = 0):
        super().__init__(kind, initial)
        self.adjustments_since_recount = 0

    def replace(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"Counter cannot be negative: {value}")
        self.adjustments_since_recount = 0
        self._commit(value)

    def decrement(self, by: int = 1) -> None:
        """Local adjustment, floored at zero."""
        self.adjustments_since_recount += 1
        self._commit(max(0, self._value - by))

    def reset(self) -> None:
        """Local adjustment to exactly zero."""
        self.adjustments_since_recount += 1
        self._commit(0)


class SingleSlotCache(EntityCache[T]):
    """Holds at most one value; UNSET when empty."""

    def __init__(self, kind: EntityKind):
        super().__init__(kind, UNSET)

    @property
    def is_set(self) -> bool:
        return self._value is not UNSET

    def get(self) -> T | None:
        return None if self._value is UNSET else self._value

    def set(self, value: T) -> None:
        self._commit(value)

    def clear(self) -> None:
        self._commit(UNSET)
