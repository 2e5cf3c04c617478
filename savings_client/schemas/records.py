"""Records — frozen Pydantic models for entities returned by the remote service.

Invariants:
    - Every record is frozen: the cache replaces records, never edits fields
    - Monetary fields are Decimal; float input is rejected (no binary rounding)
    - Wire names are the service's camelCase aliases; Python names are snake_case
    - Unknown wire fields are ignored, missing required fields fail decoding

Design Decisions:
    - populate_by_name=True: tests and callers may build records with Python names
    - Statistics arrive as fixed-position arrays; from_row() maps them by index
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from savings_client.core.domain_types import (
    AccountId, NotificationId, TransactionId, TransactionType, UserId,
)


def _reject_float(value: Any) -> Any:
    """Money must arrive as text or Decimal. A float has already lost precision."""
    if isinstance(value, float):
        raise ValueError("monetary values must not be binary floats")
    return value


Money = Annotated[Decimal, BeforeValidator(_reject_float)]
PositiveMoney = Annotated[Decimal, BeforeValidator(_reject_float), Field(gt=0)]


class Record(BaseModel):
    """Base for all entity records."""
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, extra="ignore",
    )


class Account(Record):
    id: AccountId
    account_number: str = Field(alias="numeroCuenta")
    holder: str = Field(alias="titular")
    balance: Money = Field(alias="saldo")
    active: bool = Field(True, alias="activa")
    created_at: datetime | None = Field(None, alias="fechaCreacion")
    updated_at: datetime | None = Field(None, alias="fechaActualizacion")


class Transaction(Record):
    id: TransactionId
    type: TransactionType = Field(alias="tipo")
    type_label: str | None = Field(None, alias="tipoDescripcion")
    amount: PositiveMoney = Field(alias="monto")
    balance_after: Money = Field(alias="saldoResultante")
    description: str | None = Field(None, alias="descripcion")
    timestamp: datetime = Field(alias="fechaTransaccion")
    account_id: AccountId = Field(alias="cuentaId")
    account_number: str = Field("", alias="numeroCuenta")

    @property
    def display_label(self) -> str:
        return self.type_label or self.type.label

    @property
    def is_deposit(self) -> bool:
        return self.type is TransactionType.DEPOSIT


class Notification(Record):
    id: NotificationId
    message: str = Field(alias="mensaje")
    type: str = Field(alias="tipo")
    created_at: datetime | None = Field(None, alias="fechaCreacion")
    read: bool = Field(False, alias="leida")
    user_id: UserId = Field(alias="usuarioId")


class User(Record):
    id: UserId
    email: str
    name: str = Field(alias="nombre")
    active: bool = Field(True, alias="activo")
    registered_at: datetime | None = Field(None, alias="fechaRegistro")


class UnreadCount(Record):
    count: int = Field(ge=0)


# --- Positional statistics ---------------------------------------------------

def _zero_if_none(value: Any) -> Any:
    """SUM over no rows comes back as null."""
    return Decimal("0") if value is None else value


class AccountStatistics(Record):
    """GET /cuentas/estadisticas → [totalAccounts, activeAccounts, totalBalance]."""
    total_accounts: int
    active_accounts: int
    total_balance: Money

    @classmethod
    def from_row(cls, row: list) -> "AccountStatistics":
        return cls(
            total_accounts=row[0], active_accounts=row[1],
            total_balance=_zero_if_none(row[2]),
        )


class TransactionStatistics(Record):
    """GET /transacciones/estadisticas/... → [totalDeposits, totalWithdrawals, count]."""
    total_deposits: Money
    total_withdrawals: Money
    total_transactions: int

    @classmethod
    def from_row(cls, row: list) -> "TransactionStatistics":
        return cls(
            total_deposits=_zero_if_none(row[0]),
            total_withdrawals=_zero_if_none(row[1]),
            total_transactions=row[2],
        )
