"""Store Base — operation status tracking and per-kind mutation serialization.

Invariants:
    - Every tracked operation sets loading=True on entry and returns it to False
      once no operation of the store is in flight, whatever the outcome
    - A failed operation leaves exactly one human-readable error_message and
      re-raises the original error unchanged
    - Starting an operation clears the previous error_message
    - With serialize_mutations=True, mutations of one store run one at a time
      in submission order; reads never wait on the queue
    - Reload results apply only if no newer reload has been applied already

Design Decisions:
    - asyncio.Lock as the per-kind queue: FIFO wakeup order on one event loop
    - Status is itself an EntityCache so the UI subscribes to it like any data
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import TypeVar

from savings_client.core.domain_types import EntityKind, Operation
from savings_client.core.entity_cache import EntityCache
from savings_client.core.errors import SavingsClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StatusSnapshot:
    loading: bool = False
    in_flight: int = 0
    error_message: str | None = None
    error_code: str | None = None


class OperationStatus(EntityCache[StatusSnapshot]):
    """Loading flag + last error message for one store."""

    def __init__(self, kind: EntityKind):
        super().__init__(kind, StatusSnapshot())

    @asynccontextmanager
    async def track(self, operation: Operation) -> AsyncIterator[None]:
        current = self.snapshot
        self.replace(replace(
            current, loading=True, in_flight=current.in_flight + 1,
            error_message=None, error_code=None,
        ))
        error: SavingsClientError | None = None
        try:
            yield
        except SavingsClientError as e:
            error = e
            logger.warning(
                f"{self.kind.value} {operation.value} failed: {e.message}",
                extra={
                    "entity_kind": self.kind.value,
                    "operation": operation.value,
                    "error_code": e.code,
                },
            )
            raise
        finally:
            self._finish(error)

    def clear_error(self) -> None:
        self.replace(replace(self.snapshot, error_message=None, error_code=None))

    def _finish(self, error: SavingsClientError | None) -> None:
        current = self.snapshot
        in_flight = max(0, current.in_flight - 1)
        updated = replace(current, loading=in_flight > 0, in_flight=in_flight)
        if error is not None:
            updated = replace(
                updated, error_message=error.user_message, error_code=error.code,
            )
        self.replace(updated)


class Store:
    """Shared plumbing for the entity stores."""

    KIND: EntityKind

    def __init__(self, *, serialize_mutations: bool = True):
        self.status = OperationStatus(self.KIND)
        self._mutation_lock = asyncio.Lock() if serialize_mutations else None
        self._reload_issued = 0
        self._reload_applied = 0

    @property
    def in_flight(self) -> bool:
        """True while any operation runs; the UI disables triggering controls."""
        return self.status.snapshot.in_flight > 0

    @asynccontextmanager
    async def _mutation(self, operation: Operation) -> AsyncIterator[None]:
        async with self.status.track(operation):
            if self._mutation_lock is None:
                yield
            else:
                async with self._mutation_lock:
                    yield

    async def _reload(self, fetch: Awaitable[T]) -> tuple[bool, T]:
        """Await a full-collection fetch; report whether it is still the newest."""
        self._reload_issued += 1
        sequence = self._reload_issued
        async with self.status.track(Operation.LIST):
            result = await fetch
        if sequence < self._reload_applied:
            logger.info(
                "Discarded superseded reload",
                extra={"entity_kind": self.KIND.value, "sequence": sequence},
            )
            return False, result
        self._reload_applied = sequence
        return True, result
