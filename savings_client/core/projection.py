"""View Projection — filtered, sorted and aggregated views of a cache snapshot.

Invariants:
    - Every function is pure: (snapshot, criteria) → view, no cache access
    - Filters compose by logical AND; an empty search term filters nothing
    - Search is a case-insensitive substring match over a fixed field set:
      accounts → account number, holder;
      transactions → account number, description, type label
    - Transactions are sorted by timestamp descending after filtering;
      equal timestamps keep snapshot order (stable sort)
    - Aggregates are computed over the filtered view with Decimal arithmetic only
    - Filtering is idempotent: project(project(x, c), c) == project(x, c)

Design Decisions:
    - Frozen dataclasses for criteria: hashable, comparable, cheap to replace
    - sorted(reverse=True) keeps equal keys in original order
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from savings_client.core.domain_types import (
    AccountId, RECENT_TRANSACTIONS_LIMIT, TransactionType,
)
from savings_client.schemas.records import Account, Notification, Transaction

ZERO = Decimal("0.00")


# ─── Criteria ────────────────────────────────────────────────────

@dataclass(frozen=True)
class AccountFilter:
    search: str = ""
    active_only: bool = False


@dataclass(frozen=True)
class TransactionFilter:
    search: str = ""
    account_id: AccountId | None = None
    type: TransactionType | None = None


@dataclass(frozen=True)
class NotificationFilter:
    unread_only: bool = False
    type: str | None = None


@dataclass(frozen=True)
class RecentTransactionsFilter:
    limit: int = RECENT_TRANSACTIONS_LIMIT


# ─── Aggregates ──────────────────────────────────────────────────

@dataclass(frozen=True)
class AccountTotals:
    total_balance: Decimal
    count: int
    active_count: int

    @property
    def inactive_count(self) -> int:
        return self.count - self.active_count


@dataclass(frozen=True)
class TransactionTotals:
    deposits: Decimal
    withdrawals: Decimal
    deposit_count: int
    withdrawal_count: int

    @property
    def net(self) -> Decimal:
        return self.deposits - self.withdrawals

    @property
    def count(self) -> int:
        return self.deposit_count + self.withdrawal_count


def to_decimal(value: str | Decimal) -> Decimal:
    """Exact decimal from text. Floats are refused."""
    if isinstance(value, float):
        raise TypeError("amounts must be decimal strings, not floats")
    return value if isinstance(value, Decimal) else Decimal(value.strip())


def sum_amounts(amounts: Iterable[str | Decimal]) -> Decimal:
    """sum_amounts(["10.10", "0.20", "5.70"]) == Decimal("16.00")"""
    total = ZERO
    for amount in amounts:
        total += to_decimal(amount)
    return total


# ─── Accounts ────────────────────────────────────────────────────

def _matches(term: str, *fields: str | None) -> bool:
    return any(f is not None and term in f.casefold() for f in fields)


def _search_term(raw: str) -> str:
    return raw.strip().casefold()


def filter_accounts(
    accounts: Iterable[Account], criteria: AccountFilter,
) -> tuple[Account, ...]:
    term = _search_term(criteria.search)
    return tuple(
        a for a in accounts
        if (not criteria.active_only or a.active)
        and (not term or _matches(term, a.account_number, a.holder))
    )


def summarize_accounts(accounts: Iterable[Account]) -> AccountTotals:
    accounts = tuple(accounts)
    return AccountTotals(
        total_balance=sum_amounts(a.balance for a in accounts),
        count=len(accounts),
        active_count=sum(1 for a in accounts if a.active),
    )


# ─── Transactions ────────────────────────────────────────────────

def filter_transactions(
    transactions: Iterable[Transaction], criteria: TransactionFilter,
) -> tuple[Transaction, ...]:
    term = _search_term(criteria.search)
    return tuple(
        t for t in transactions
        if (criteria.account_id is None or t.account_id == criteria.account_id)
        and (criteria.type is None or t.type is criteria.type)
        and (not term or _matches(
            term, t.account_number, t.description, t.display_label,
        ))
    )


def sort_newest_first(transactions: Iterable[Transaction]) -> tuple[Transaction, ...]:
    return tuple(sorted(transactions, key=lambda t: t.timestamp, reverse=True))


def project_transactions(
    transactions: Iterable[Transaction], criteria: TransactionFilter,
) -> tuple[Transaction, ...]:
    return sort_newest_first(filter_transactions(transactions, criteria))


def recent_transactions(
    transactions: Iterable[Transaction], limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> tuple[Transaction, ...]:
    return sort_newest_first(transactions)[:limit]


def project_recent_transactions(
    transactions: Iterable[Transaction], criteria: RecentTransactionsFilter,
) -> tuple[Transaction, ...]:
    return recent_transactions(transactions, criteria.limit)


def summarize_transactions(transactions: Iterable[Transaction]) -> TransactionTotals:
    transactions = tuple(transactions)
    deposits = [t.amount for t in transactions if t.type is TransactionType.DEPOSIT]
    withdrawals = [t.amount for t in transactions if t.type is TransactionType.WITHDRAWAL]
    return TransactionTotals(
        deposits=sum_amounts(deposits),
        withdrawals=sum_amounts(withdrawals),
        deposit_count=len(deposits),
        withdrawal_count=len(withdrawals),
    )


# ─── Notifications ───────────────────────────────────────────────

def filter_notifications(
    notifications: Iterable[Notification], criteria: NotificationFilter,
) -> tuple[Notification, ...]:
    return tuple(
        n for n in notifications
        if (not criteria.unread_only or not n.read)
        and (criteria.type is None or n.type == criteria.type)
    )


def count_unread(notifications: Iterable[Notification]) -> int:
    return sum(1 for n in notifications if not n.read)
