"""Remote API — endpoint groups of the savings service, one class per entity kind.

Invariants:
    - Each method is exactly one adapter call (one network round trip)
    - Statistics arrays are mapped to named fields by position, never by key
    - Payloads arrive already validated (schemas/requests.py)

Design Decisions:
    - Thin classes over one generic adapter: paths live here, transport lives there
    - Path segments built with quote(): account numbers are user-entered text
"""

from decimal import Decimal
from urllib.parse import quote

from savings_client.core.domain_types import (
    AccountId, EntityKind, NotificationId, Operation, TransactionId,
    TransactionType, UserId,
)
from savings_client.core.errors import DecodeError, ErrorContext
from savings_client.infrastructure.remote_adapter import RemoteFetchAdapter
from savings_client.schemas.records import (
    Account, AccountStatistics, Notification, Transaction,
    TransactionStatistics, User,
)
from savings_client.schemas.requests import (
    AccountUpdate, LoginRequest, LowBalanceNotification, NewAccount,
    NewNotification, NewTransaction, PasswordChange, RegistrationRequest,
    TransactionNotification, UserUpdate,
)


def _row(kind: EntityKind, path: str, row: list, model):
    """Map a positional statistics row; a short or malformed row is a DecodeError."""
    ctx = ErrorContext(entity_kind=kind, operation=Operation.FETCH_ROW, path=path)
    if len(row) < 3:
        raise DecodeError(f"expected 3 positions from {path}, got {len(row)}", ctx)
    try:
        return model.from_row(row)
    except ValueError as e:
        raise DecodeError(f"bad statistics row from {path}: {e}", ctx) from e


class AccountsApi:
    KIND = EntityKind.ACCOUNTS
    BASE = "/cuentas"

    def __init__(self, adapter: RemoteFetchAdapter):
        self.adapter = adapter

    async def list_all(self) -> tuple[Account, ...]:
        return await self.adapter.list_all(self.KIND, self.BASE, Account)

    async def get_by_id(self, account_id: AccountId) -> Account:
        return await self.adapter.get_by_id(self.KIND, f"{self.BASE}/{account_id}", Account)

    async def get_by_number(self, account_number: str) -> Account:
        path = f"{self.BASE}/numero/{quote(account_number, safe='')}"
        return await self.adapter.get_by_id(self.KIND, path, Account)

    async def search_by_holder(self, holder: str) -> tuple[Account, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/buscar", Account, params={"titular": holder},
        )

    async def list_active(self) -> tuple[Account, ...]:
        return await self.adapter.list_all(self.KIND, f"{self.BASE}/activas", Account)

    async def list_by_balance(self) -> tuple[Account, ...]:
        return await self.adapter.list_all(self.KIND, f"{self.BASE}/ordenadas/saldo", Account)

    async def list_above_average(self) -> tuple[Account, ...]:
        return await self.adapter.list_all(self.KIND, f"{self.BASE}/superior-promedio", Account)

    async def create(self, payload: NewAccount) -> Account:
        return await self.adapter.create(self.KIND, self.BASE, payload, Account)

    async def update(self, account_id: AccountId, payload: AccountUpdate) -> Account:
        return await self.adapter.update(
            self.KIND, f"{self.BASE}/{account_id}", payload, Account,
        )

    async def delete(self, account_id: AccountId) -> None:
        await self.adapter.delete(self.KIND, f"{self.BASE}/{account_id}")

    async def statistics(self) -> AccountStatistics:
        path = f"{self.BASE}/estadisticas"
        row = await self.adapter.fetch_row(self.KIND, path)
        return _row(self.KIND, path, row, AccountStatistics)


class TransactionsApi:
    KIND = EntityKind.TRANSACTIONS
    BASE = "/transacciones"

    def __init__(self, adapter: RemoteFetchAdapter):
        self.adapter = adapter

    async def list_all(self) -> tuple[Transaction, ...]:
        return await self.adapter.list_all(self.KIND, self.BASE, Transaction)

    async def get_by_id(self, transaction_id: TransactionId) -> Transaction:
        return await self.adapter.get_by_id(
            self.KIND, f"{self.BASE}/{transaction_id}", Transaction,
        )

    async def list_by_account(self, account_id: AccountId) -> tuple[Transaction, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/cuenta/{account_id}", Transaction,
        )

    async def list_by_type(self, tx_type: TransactionType) -> tuple[Transaction, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/tipo/{tx_type.value}", Transaction,
        )

    async def list_by_account_and_type(
        self, account_id: AccountId, tx_type: TransactionType,
    ) -> tuple[Transaction, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/cuenta/{account_id}/tipo/{tx_type.value}",
            Transaction,
        )

    async def list_recent(self, limit: int = 10) -> tuple[Transaction, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/recientes", Transaction, params={"limit": limit},
        )

    async def deposit(self, payload: NewTransaction) -> Transaction:
        return await self.adapter.create(
            self.KIND, f"{self.BASE}/deposito", payload, Transaction,
        )

    async def withdraw(self, payload: NewTransaction) -> Transaction:
        return await self.adapter.create(
            self.KIND, f"{self.BASE}/retiro", payload, Transaction,
        )

    async def account_statistics(self, account_id: AccountId) -> TransactionStatistics:
        path = f"{self.BASE}/estadisticas/cuenta/{account_id}"
        row = await self.adapter.fetch_row(self.KIND, path)
        return _row(self.KIND, path, row, TransactionStatistics)

    async def global_statistics(self) -> TransactionStatistics:
        path = f"{self.BASE}/estadisticas/globales"
        row = await self.adapter.fetch_row(self.KIND, path)
        return _row(self.KIND, path, row, TransactionStatistics)

    async def total_deposits(self, account_id: AccountId) -> Decimal:
        return await self.adapter.fetch_value(
            self.KIND, f"{self.BASE}/depositos/cuenta/{account_id}", Decimal,
        )

    async def total_withdrawals(self, account_id: AccountId) -> Decimal:
        return await self.adapter.fetch_value(
            self.KIND, f"{self.BASE}/retiros/cuenta/{account_id}", Decimal,
        )


class NotificationsApi:
    KIND = EntityKind.NOTIFICATIONS
    BASE = "/notificaciones"

    def __init__(self, adapter: RemoteFetchAdapter):
        self.adapter = adapter

    async def list_for_user(self, user_id: UserId) -> tuple[Notification, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/usuario/{user_id}", Notification,
        )

    async def list_unread(self, user_id: UserId) -> tuple[Notification, ...]:
        return await self.adapter.list_all(
            self.KIND, f"{self.BASE}/usuario/{user_id}/no-leidas", Notification,
        )

    async def count_unread(self, user_id: UserId) -> int:
        return await self.adapter.count(
            EntityKind.UNREAD_COUNT, f"{self.BASE}/usuario/{user_id}/contar-no-leidas",
        )

    async def get_by_id(self, notification_id: NotificationId) -> Notification:
        return await self.adapter.get_by_id(
            self.KIND, f"{self.BASE}/{notification_id}", Notification,
        )

    async def create(self, payload: NewNotification) -> Notification:
        return await self.adapter.create(self.KIND, self.BASE, payload, Notification)

    async def create_for_transaction(self, payload: TransactionNotification) -> None:
        await self.adapter.create(self.KIND, f"{self.BASE}/transaccion", payload, None)

    async def create_low_balance(self, payload: LowBalanceNotification) -> None:
        await self.adapter.create(self.KIND, f"{self.BASE}/saldo-bajo", payload, None)

    async def mark_read(self, notification_id: NotificationId) -> None:
        await self.adapter.update(
            self.KIND, f"{self.BASE}/{notification_id}/leer", None, None,
        )

    async def mark_all_read(self, user_id: UserId) -> None:
        await self.adapter.update(
            self.KIND, f"{self.BASE}/usuario/{user_id}/leer-todas", None, None,
        )

    async def delete(self, notification_id: NotificationId) -> None:
        await self.adapter.delete(self.KIND, f"{self.BASE}/{notification_id}")


class UsersApi:
    KIND = EntityKind.USERS
    BASE = "/usuarios"

    def __init__(self, adapter: RemoteFetchAdapter):
        self.adapter = adapter

    async def list_all(self) -> tuple[User, ...]:
        return await self.adapter.list_all(self.KIND, self.BASE, User)

    async def get_by_id(self, user_id: UserId) -> User:
        return await self.adapter.get_by_id(self.KIND, f"{self.BASE}/{user_id}", User)

    async def register(self, payload: RegistrationRequest) -> User:
        return await self.adapter.create(self.KIND, f"{self.BASE}/registro", payload, User)

    async def login(self, payload: LoginRequest) -> User:
        return await self.adapter.create(self.KIND, f"{self.BASE}/login", payload, User)

    async def update(self, user_id: UserId, payload: UserUpdate) -> User:
        return await self.adapter.update(self.KIND, f"{self.BASE}/{user_id}", payload, User)

    async def change_password(self, user_id: UserId, payload: PasswordChange) -> None:
        await self.adapter.update(self.KIND, f"{self.BASE}/{user_id}/password", payload, None)

    async def deactivate(self, user_id: UserId) -> None:
        await self.adapter.update(self.KIND, f"{self.BASE}/{user_id}/desactivar", None, None)

    async def activate(self, user_id: UserId) -> None:
        await self.adapter.update(self.KIND, f"{self.BASE}/{user_id}/activar", None, None)
