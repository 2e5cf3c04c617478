"""Transaction Store — transactions cache; records are immutable once created.

Invariants:
    - Deposits and withdrawals prepend the server's record (with its
      authoritative balance_after); no existing record is ever edited
    - A full reload replaces the whole collection
    - Per-account, per-type and recent lookups return results without caching
"""

import logging
from decimal import Decimal

from savings_client.core.domain_types import (
    AccountId, EntityKind, Operation, TransactionId, TransactionType,
)
from savings_client.core.errors import ErrorContext
from savings_client.core.reconcile import apply_created
from savings_client.core.entity_cache import CollectionCache
from savings_client.infrastructure.remote_api import TransactionsApi
from savings_client.schemas.records import Transaction, TransactionStatistics
from savings_client.schemas.requests import NewTransaction, validate_payload
from savings_client.services.store_base import Store

logger = logging.getLogger(__name__)


class TransactionStore(Store):
    KIND = EntityKind.TRANSACTIONS

    def __init__(self, api: TransactionsApi, *, serialize_mutations: bool = True):
        super().__init__(serialize_mutations=serialize_mutations)
        self.api = api
        self.cache: CollectionCache[Transaction] = CollectionCache(self.KIND)

    async def load(self) -> tuple[Transaction, ...]:
        is_newest, transactions = await self._reload(self.api.list_all())
        if is_newest:
            self.cache.replace(transactions)
        return transactions

    # --- Mutations --------------------------------------------------------------

    async def deposit(self, payload: NewTransaction | dict) -> Transaction:
        return await self._record(TransactionType.DEPOSIT, payload)

    async def withdraw(self, payload: NewTransaction | dict) -> Transaction:
        return await self._record(TransactionType.WITHDRAWAL, payload)

    async def _record(
        self, tx_type: TransactionType, payload: NewTransaction | dict,
    ) -> Transaction:
        async with self._mutation(Operation.CREATE):
            ctx = ErrorContext(entity_kind=self.KIND, operation=Operation.CREATE)
            payload = validate_payload(NewTransaction, payload, ctx)
            if tx_type is TransactionType.DEPOSIT:
                transaction = await self.api.deposit(payload)
            else:
                transaction = await self.api.withdraw(payload)
            apply_created(self.cache, transaction)
        logger.info(
            f"{tx_type.label} recorded, balance now {transaction.balance_after}",
            extra={"entity_kind": self.KIND.value, "record_id": transaction.id},
        )
        return transaction

    # --- Lookups ----------------------------------------------------------------

    async def get_by_id(self, transaction_id: TransactionId) -> Transaction:
        async with self.status.track(Operation.GET_BY_ID):
            return await self.api.get_by_id(transaction_id)

    async def list_by_account(self, account_id: AccountId) -> tuple[Transaction, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_by_account(account_id)

    async def list_by_type(self, tx_type: TransactionType) -> tuple[Transaction, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_by_type(tx_type)

    async def list_by_account_and_type(
        self, account_id: AccountId, tx_type: TransactionType,
    ) -> tuple[Transaction, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_by_account_and_type(account_id, tx_type)

    async def list_recent(self, limit: int = 10) -> tuple[Transaction, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_recent(limit)

    async def account_statistics(self, account_id: AccountId) -> TransactionStatistics:
        async with self.status.track(Operation.FETCH_ROW):
            return await self.api.account_statistics(account_id)

    async def global_statistics(self) -> TransactionStatistics:
        async with self.status.track(Operation.FETCH_ROW):
            return await self.api.global_statistics()

    async def total_deposits(self, account_id: AccountId) -> Decimal:
        async with self.status.track(Operation.FETCH_ROW):
            return await self.api.total_deposits(account_id)

    async def total_withdrawals(self, account_id: AccountId) -> Decimal:
        async with self.status.track(Operation.FETCH_ROW):
            return await self.api.total_withdrawals(account_id)
