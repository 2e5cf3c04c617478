"""Error Hierarchy — codes, categories, severities and UI messages."""

from savings_client.core.domain_types import EntityKind, Operation
from savings_client.core.errors import (
    DecodeError, ErrorCategory, ErrorContext, ErrorSeverity, NetworkError,
    SavingsClientError, ServerError, ValidationError,
)


def test_all_errors_share_the_base():
    for error in (
        ValidationError("monto: debe ser mayor a 0", field="monto"),
        NetworkError("connect failed"),
        ServerError(400, "Saldo insuficiente"),
        DecodeError("bad shape"),
    ):
        assert isinstance(error, SavingsClientError)


def test_server_error_prefers_server_message():
    error = ServerError(400, "Saldo insuficiente")
    assert error.status == 400
    assert error.user_message == "Saldo insuficiente"
    assert error.category is ErrorCategory.SERVER
    assert error.severity is ErrorSeverity.ERROR


def test_server_error_without_message_shows_status():
    error = ServerError(503)
    assert error.user_message == "Código de error: 503"
    assert error.severity is ErrorSeverity.CRITICAL


def test_network_and_decode_messages_hide_internals():
    assert NetworkError("httpx.ConnectError: [Errno 111]").user_message == (
        "No se pudo conectar con el servidor"
    )
    assert DecodeError("list_type: Input should be a valid list").user_message == (
        "Respuesta inesperada del servidor"
    )


def test_validation_error_keeps_field_and_message():
    error = ValidationError("titular: cannot be empty", field="titular")
    assert error.field == "titular"
    assert error.user_message == "titular: cannot be empty"
    assert error.code == "VALIDATION_ERROR"


def test_to_dict_envelope_carries_context():
    ctx = ErrorContext(
        entity_kind=EntityKind.ACCOUNTS, operation=Operation.CREATE, path="/cuentas",
    )
    envelope = ServerError(409, "Duplicada", ctx).to_dict()["error"]
    assert envelope["code"] == "SERVER_ERROR"
    assert envelope["message"] == "Duplicada"
    assert envelope["context"] == {
        "entity_kind": "accounts", "operation": "create", "path": "/cuentas",
    }
    assert envelope["timestamp"]
