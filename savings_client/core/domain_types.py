"""Domain Types — identity types and enums shared across the client.

Invariants:
    - AccountId, TransactionId, NotificationId, UserId wrap server-assigned ints
    - TransactionType values are the wire values ("DEPOSITO" / "RETIRO")
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AccountId = NewType("AccountId", int)
TransactionId = NewType("TransactionId", int)
NotificationId = NewType("NotificationId", int)
UserId = NewType("UserId", int)


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_POLL_INTERVAL_SECONDS = 30.0
RECENT_TRANSACTIONS_LIMIT = 5
SESSION_STORAGE_KEY = "currentUser"


# ─── Enums ───────────────────────────────────────────────────────

class TransactionType(str, Enum):
    """Transaction direction; wire values come from the remote service."""
    DEPOSIT = "DEPOSITO"
    WITHDRAWAL = "RETIRO"

    @property
    def label(self) -> str:
        return _TRANSACTION_LABELS[self]


_TRANSACTION_LABELS = {
    TransactionType.DEPOSIT: "Depósito",
    TransactionType.WITHDRAWAL: "Retiro",
}


class EntityKind(str, Enum):
    """One cache per kind. Used for logging and error context."""
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    NOTIFICATIONS = "notifications"
    UNREAD_COUNT = "unread_count"
    CURRENT_USER = "current_user"
    USERS = "users"


class Operation(str, Enum):
    """Remote operation types, exactly one network call each."""
    LIST = "list"
    GET_BY_ID = "get_by_id"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    COUNT = "count"
    FETCH_ROW = "fetch_row"


class PollerState(str, Enum):
    """Polling Refresher lifecycle."""
    IDLE = "idle"
    POLLING = "polling"


class OverlapPolicy(str, Enum):
    """What a poll tick does when the previous fetch is still in flight."""
    SKIP = "skip"
    CANCEL_PREVIOUS = "cancel_previous"
