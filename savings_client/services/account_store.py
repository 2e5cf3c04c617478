"""Account Store — accounts cache kept in step with the remote service.

Invariants:
    - The cache changes only after a remote call succeeds
    - create prepends, update replaces by id, delete removes by id
    - Balance is never computed locally: it changes only through a server record
    - Lookups that return subsets (search, active, ordered) never replace the cache
"""

import logging

from savings_client.core.domain_types import AccountId, EntityKind, Operation
from savings_client.core.entity_cache import CollectionCache
from savings_client.core.errors import ErrorContext
from savings_client.core.reconcile import apply_created, apply_deleted, apply_updated
from savings_client.infrastructure.remote_api import AccountsApi
from savings_client.schemas.records import Account, AccountStatistics
from savings_client.schemas.requests import AccountUpdate, NewAccount, validate_payload
from savings_client.services.store_base import Store

logger = logging.getLogger(__name__)


class AccountStore(Store):
    KIND = EntityKind.ACCOUNTS

    def __init__(self, api: AccountsApi, *, serialize_mutations: bool = True):
        super().__init__(serialize_mutations=serialize_mutations)
        self.api = api
        self.cache: CollectionCache[Account] = CollectionCache(self.KIND)

    # --- Full reload ------------------------------------------------------------

    async def load(self) -> tuple[Account, ...]:
        is_newest, accounts = await self._reload(self.api.list_all())
        if is_newest:
            self.cache.replace(accounts)
        return accounts

    # --- Mutations --------------------------------------------------------------

    async def create(self, payload: NewAccount | dict) -> Account:
        async with self._mutation(Operation.CREATE):
            payload = validate_payload(NewAccount, payload, self._ctx(Operation.CREATE))
            account = await self.api.create(payload)
            apply_created(self.cache, account)
        logger.info(
            "Account created",
            extra={"entity_kind": self.KIND.value, "record_id": account.id},
        )
        return account

    async def update(self, account_id: AccountId, payload: AccountUpdate | dict) -> Account:
        async with self._mutation(Operation.UPDATE):
            payload = validate_payload(AccountUpdate, payload, self._ctx(Operation.UPDATE))
            account = await self.api.update(account_id, payload)
            apply_updated(self.cache, account)
        return account

    async def set_active(self, account_id: AccountId, active: bool) -> Account:
        return await self.update(account_id, AccountUpdate(active=active))

    async def delete(self, account_id: AccountId) -> None:
        async with self._mutation(Operation.DELETE):
            await self.api.delete(account_id)
            apply_deleted(self.cache, account_id)

    # --- Lookups ----------------------------------------------------------------

    async def refresh_one(self, account_id: AccountId) -> Account:
        """Fetch one account; replace the cached copy when the cache holds it."""
        async with self.status.track(Operation.GET_BY_ID):
            account = await self.api.get_by_id(account_id)
        apply_updated(self.cache, account)
        return account

    async def get_by_number(self, account_number: str) -> Account:
        async with self.status.track(Operation.GET_BY_ID):
            return await self.api.get_by_number(account_number)

    async def search_by_holder(self, holder: str) -> tuple[Account, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.search_by_holder(holder)

    async def list_active(self) -> tuple[Account, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_active()

    async def list_by_balance(self) -> tuple[Account, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_by_balance()

    async def list_above_average(self) -> tuple[Account, ...]:
        async with self.status.track(Operation.LIST):
            return await self.api.list_above_average()

    async def statistics(self) -> AccountStatistics:
        async with self.status.track(Operation.FETCH_ROW):
            return await self.api.statistics()

    def _ctx(self, operation: Operation) -> ErrorContext:
        return ErrorContext(entity_kind=self.KIND, operation=operation)
