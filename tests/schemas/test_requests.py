"""Request Payloads — caller-side validation and wire encoding."""

from decimal import Decimal

import pytest

from savings_client.core.errors import ValidationError
from savings_client.schemas.requests import (
    AccountUpdate, LoginRequest, NewAccount, NewNotification, NewTransaction,
    RegistrationRequest, validate_payload,
)


def test_new_transaction_wire_keeps_decimal_text():
    payload = NewTransaction(account_id=1, amount=Decimal("50.00"), description="Ahorro")
    assert payload.to_wire() == {"cuentaId": 1, "monto": "50.00", "descripcion": "Ahorro"}


def test_wire_omits_unset_optionals():
    assert AccountUpdate(active=False).to_wire() == {"activa": False}


@pytest.mark.parametrize("amount", ["0", "-5.00"])
def test_amount_must_be_positive(amount):
    with pytest.raises(ValidationError) as exc:
        validate_payload(NewTransaction, {"cuentaId": 1, "monto": amount})
    assert exc.value.field == "monto"


def test_account_must_be_chosen():
    with pytest.raises(ValidationError) as exc:
        validate_payload(NewTransaction, {"cuentaId": 0, "monto": "5.00"})
    assert exc.value.field == "cuentaId"


def test_new_account_requires_number_and_holder():
    with pytest.raises(ValidationError) as exc:
        validate_payload(NewAccount, {"numeroCuenta": "AH-1", "titular": "   "})
    assert exc.value.field == "titular"


def test_new_account_balance_defaults_to_zero_and_rejects_negative():
    assert validate_payload(NewAccount, {"numeroCuenta": "AH-1", "titular": "Ana"}).balance == 0
    with pytest.raises(ValidationError):
        validate_payload(
            NewAccount, {"numeroCuenta": "AH-1", "titular": "Ana", "saldo": "-1"},
        )


def test_new_account_strips_text():
    payload = validate_payload(NewAccount, {"numeroCuenta": " AH-1 ", "titular": " Ana "})
    assert (payload.account_number, payload.holder) == ("AH-1", "Ana")


def test_notification_requires_message_type_and_user():
    with pytest.raises(ValidationError):
        validate_payload(NewNotification, {"mensaje": "Hola", "tipo": "INFO"})


def test_login_requires_password():
    with pytest.raises(ValidationError) as exc:
        validate_payload(LoginRequest, {"email": "ana@example.com", "password": ""})
    assert exc.value.field == "password"


def test_registration_password_min_length():
    with pytest.raises(ValidationError):
        validate_payload(
            RegistrationRequest,
            {"email": "ana@example.com", "nombre": "Ana", "password": "123"},
        )


def test_built_payload_passes_through():
    payload = LoginRequest(email="ana@example.com", password="x")
    assert validate_payload(LoginRequest, payload) is payload
