"""Boundary Protocols — contracts between the client core and its collaborators.

Invariants:
    - Stores depend on these Protocols, never on a concrete storage backend
    - Storage holds opaque text blobs; (de)serialization happens in the store

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Synchronous: the persisted session is read once at startup and written on
      login/logout, both outside any hot path
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

T_co = TypeVar("T_co", covariant=True)


class KeyValueStorage(Protocol):
    """Key-value blob store for the persisted session (browser localStorage analogue)."""
    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


class Fetch(Protocol[T_co]):
    """Zero-argument coroutine factory used by the polling refresher."""
    def __call__(self) -> Awaitable[T_co]: ...


Sleep = Callable[[float], Awaitable[None]]
