"""Record builders — terse constructors for cache and projection tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from savings_client.core.domain_types import TransactionType
from savings_client.schemas.records import Account, Notification, Transaction, User

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def account(id, number=None, holder="Ana Pérez", balance="100.00", active=True):
    return Account(
        id=id, account_number=number or f"AH-{id:04d}", holder=holder,
        balance=Decimal(balance), active=active,
    )


def transaction(
    id, amount="10.00", type=TransactionType.DEPOSIT, minutes=0,
    account_id=1, account_number="AH-0001", description=None,
    balance_after="100.00",
):
    return Transaction(
        id=id, type=type, amount=Decimal(amount),
        balance_after=Decimal(balance_after), description=description,
        timestamp=T0 + timedelta(minutes=minutes), account_id=account_id,
        account_number=account_number,
    )


def notification(id, user_id=7, read=False, type="INFO", message="Aviso"):
    return Notification(id=id, message=message, type=type, read=read, user_id=user_id)


def user(id=7, email="ana@example.com", name="Ana"):
    return User(id=id, email=email, name=name)
