"""Polling Refresher — fixed-interval fetch feeding a cache while a lease is held.

Invariants:
    - idle → polling when the first lease is acquired: fetch immediately, then
      once per interval
    - polling → idle when the last lease is released: the timer and any
      fetch still in flight are cancelled, and a result that still arrives
      from an older generation is discarded (generation guard)
    - Ticks never pile up: with SKIP a tick is dropped while a fetch is in
      flight; with CANCEL_PREVIOUS the in-flight fetch is cancelled
    - A result is never applied after a newer one (sequence guard)
    - A failed fetch leaves the cache untouched; polling continues next tick

Design Decisions:
    - Lease objects instead of a raw timer handle: the caller must release what
      it acquired, and several views can share one refresher
    - sleep is injectable so tests drive ticks with a manual clock
"""

import asyncio
import logging
from typing import Generic, TypeVar

from savings_client.core.domain_types import OverlapPolicy, PollerState
from savings_client.core.entity_cache import EntityCache
from savings_client.core.errors import SavingsClientError
from savings_client.core.repository_protocols import Fetch, Sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollingLease:
    """Keeps its refresher polling until released. release() is idempotent."""

    def __init__(self, refresher: "PollingRefresher"):
        self._refresher = refresher
        self.released = False

    def release(self) -> None:
        if not self.released:
            self.released = True
            self._refresher._release(self)

    def __enter__(self) -> "PollingLease":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class PollingRefresher(Generic[T]):
    """Re-fetches one value on a timer and replaces the cache with it."""

    def __init__(
        self,
        name: str,
        fetch: Fetch[T],
        cache: EntityCache[T],
        interval: float,
        *,
        overlap: OverlapPolicy = OverlapPolicy.SKIP,
        sleep: Sleep = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self.overlap = overlap
        self.state = PollerState.IDLE
        self.last_error: Exception | None = None
        self.skipped_ticks = 0
        self._fetch = fetch
        self._cache = cache
        self._sleep = sleep
        self._leases: set[PollingLease] = set()
        self._generation = 0
        self._issued = 0
        self._applied = 0
        self._timer: asyncio.Task | None = None
        self._in_flight: asyncio.Task | None = None

    @property
    def lease_count(self) -> int:
        return len(self._leases)

    def acquire(self) -> PollingLease:
        """Must be called from a running event loop."""
        lease = PollingLease(self)
        self._leases.add(lease)
        if self.state is PollerState.IDLE:
            self._start()
        return lease

    def stop(self) -> None:
        """Release every lease and cancel pending work without waiting for it."""
        for lease in list(self._leases):
            lease.released = True
        self._leases.clear()
        self._stop()

    async def aclose(self) -> None:
        """Stop, then wait for the cancelled timer and fetch tasks to finish."""
        tasks = [t for t in (self._timer, self._in_flight) if t is not None and not t.done()]
        self.stop()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def refresh(self) -> T:
        """One fetch outside the timer, applied through the same guards.

        Errors propagate to the caller. A tick issued while this fetch is
        pending is newer, so its result wins whatever the arrival order.
        """
        generation = self._generation
        self._issued += 1
        sequence = self._issued
        value = await self._fetch()
        self._apply(generation, sequence, value)
        return value

    # --- State transitions ----------------------------------------------------

    def _start(self) -> None:
        self._generation += 1
        self.state = PollerState.POLLING
        self._timer = asyncio.get_running_loop().create_task(
            self._run(self._generation), name=f"poll:{self.name}",
        )
        logger.info(
            f"Polling {self.name} every {self.interval}s",
            extra={"state": self.state.value, "generation": self._generation},
        )

    def _stop(self) -> None:
        was_polling = self.state is PollerState.POLLING
        self._generation += 1
        self.state = PollerState.IDLE
        for task in (self._timer, self._in_flight):
            if task is not None:
                task.cancel()
        self._timer = None
        self._in_flight = None
        if was_polling:
            logger.info(
                f"Stopped polling {self.name}",
                extra={"state": self.state.value, "generation": self._generation},
            )

    def _release(self, lease: PollingLease) -> None:
        self._leases.discard(lease)
        if not self._leases and self.state is PollerState.POLLING:
            self._stop()

    # --- Ticks ----------------------------------------------------------------

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            self._tick(generation)
            await self._sleep(self.interval)

    def _tick(self, generation: int) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            if self.overlap is OverlapPolicy.SKIP:
                self.skipped_ticks += 1
                logger.debug(
                    f"Skipped {self.name} tick, previous fetch still in flight",
                    extra={"generation": generation, "sequence": self._issued},
                )
                return
            self._in_flight.cancel()
            logger.debug(
                f"Cancelled superseded {self.name} fetch",
                extra={"generation": generation, "sequence": self._issued},
            )
        self._issued += 1
        self._in_flight = asyncio.get_running_loop().create_task(
            self._fetch_and_apply(generation, self._issued),
        )

    async def _fetch_and_apply(self, generation: int, sequence: int) -> None:
        try:
            value = await self._fetch()
        except SavingsClientError as e:
            self.last_error = e
            logger.warning(
                f"Poll of {self.name} failed: {e.message}",
                extra={"error_code": e.code, "sequence": sequence},
            )
            return
        except Exception as e:
            self.last_error = e
            logger.exception(
                f"Poll of {self.name} raised unexpectedly",
                extra={"sequence": sequence},
            )
            return
        self._apply(generation, sequence, value)

    def _apply(self, generation: int, sequence: int, value: T) -> bool:
        if generation != self._generation or sequence <= self._applied:
            logger.debug(
                f"Discarded stale {self.name} result",
                extra={"generation": generation, "sequence": sequence},
            )
            return False
        self._applied = sequence
        self.last_error = None
        self._cache.replace(value)
        return True
