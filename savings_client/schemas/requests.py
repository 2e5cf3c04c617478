"""Request Payloads — caller-side validation before any network call.

Invariants:
    - Required text fields are stripped and must be non-empty
    - Transaction amounts are strictly positive; initial balances are >= 0
    - to_wire() emits service aliases and decimals as strings, omits None fields
    - validate_payload() turns Pydantic errors into ValidationError(field=...)

Design Decisions:
    - field_validator for side-effect-free transforms (strip), models stay pure
    - Messages are UI-ready (shown verbatim as the store's error message)
"""

from decimal import Decimal
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from savings_client.core.domain_types import AccountId, TransactionType, UserId
from savings_client.core.errors import ErrorContext, ValidationError
from savings_client.schemas.records import Money, PositiveMoney


class Payload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("cannot be empty or whitespace")
    return value


# --- Accounts -----------------------------------------------------------------

class NewAccount(Payload):
    account_number: str = Field(alias="numeroCuenta", max_length=50)
    holder: str = Field(alias="titular", max_length=200)
    balance: Money = Field(Decimal("0"), alias="saldo", ge=0)

    @field_validator("account_number", "holder")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


class AccountUpdate(Payload):
    holder: str | None = Field(None, alias="titular", max_length=200)
    active: bool | None = Field(None, alias="activa")

    @field_validator("holder")
    @classmethod
    def strip_holder(cls, v: str | None) -> str | None:
        return None if v is None else _require_text(v)


# --- Transactions -------------------------------------------------------------

class NewTransaction(Payload):
    account_id: AccountId = Field(alias="cuentaId", gt=0)
    amount: PositiveMoney = Field(alias="monto")
    description: str | None = Field(None, alias="descripcion", max_length=500)


# --- Notifications ------------------------------------------------------------

class NewNotification(Payload):
    message: str = Field(alias="mensaje", max_length=1000)
    type: str = Field(alias="tipo", max_length=50)
    user_id: UserId = Field(alias="usuarioId", gt=0)

    @field_validator("message", "type")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


class TransactionNotification(Payload):
    user_id: UserId = Field(alias="usuarioId", gt=0)
    transaction_type: TransactionType = Field(alias="tipoTransaccion")
    amount: PositiveMoney = Field(alias="monto")
    account_number: str = Field(alias="numeroCuenta")

    @field_validator("account_number")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


class LowBalanceNotification(Payload):
    user_id: UserId = Field(alias="usuarioId", gt=0)
    account_number: str = Field(alias="numeroCuenta")
    balance: Money = Field(alias="saldo")

    @field_validator("account_number")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


# --- Users --------------------------------------------------------------------

class LoginRequest(Payload):
    email: str = Field(max_length=254)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return _require_text(v)


class RegistrationRequest(Payload):
    email: str = Field(max_length=254)
    name: str = Field(alias="nombre", max_length=200)
    password: str = Field(min_length=6)

    @field_validator("email", "name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


class UserUpdate(Payload):
    name: str = Field(alias="nombre", max_length=200)
    email: str = Field(max_length=254)

    @field_validator("email", "name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _require_text(v)


class PasswordChange(Payload):
    password: str = Field(min_length=6)


# --- Validation boundary ------------------------------------------------------

P = TypeVar("P", bound=Payload)


def validate_payload(
    model: type[P], data: P | dict[str, Any], context: ErrorContext | None = None,
) -> P:
    """Accept a built payload or a raw dict; raise ValidationError on bad input."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or model.__name__
        raise ValidationError(
            f"{field}: {first['msg']}", field=field, context=context,
        ) from e
