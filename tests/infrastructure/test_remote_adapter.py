"""Remote Fetch Adapter — decoding and error mapping at the transport boundary.

Tests cover:
    - No response → NetworkError (one attempt, no retry)
    - Failure status → ServerError with text or JSON server message
    - Unexpected shape, invalid JSON, empty body → DecodeError
    - JSON numbers decoded as Decimal, never float
    - Payload sent with service aliases; PUT without payload sends {}
"""

import json
from decimal import Decimal

import httpx
import pytest

from savings_client.core.domain_types import EntityKind, Operation
from savings_client.core.errors import DecodeError, NetworkError, ServerError
from savings_client.infrastructure.remote_adapter import (
    RemoteFetchAdapter, extract_server_message,
)
from savings_client.schemas.records import Account
from savings_client.schemas.requests import NewTransaction

ACCOUNTS = EntityKind.ACCOUNTS


def _adapter(handler) -> RemoteFetchAdapter:
    return RemoteFetchAdapter.from_base_url(
        "http://test/api", transport=httpx.MockTransport(handler),
    )


def _json(status: int, text: str) -> httpx.Response:
    return httpx.Response(
        status, content=text.encode(), headers={"content-type": "application/json"},
    )


async def test_list_decodes_numbers_as_decimal():
    body = '[{"id": 1, "numeroCuenta": "AH-1", "titular": "Ana", "saldo": 150.10}]'
    adapter = _adapter(lambda request: _json(200, body))

    accounts = await adapter.list_all(ACCOUNTS, "/cuentas", Account)

    assert isinstance(accounts, tuple)
    assert accounts[0].balance == Decimal("150.10")
    assert str(accounts[0].balance) == "150.10"
    await adapter.aclose()


async def test_request_path_joins_base_url():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return _json(200, "[]")

    adapter = _adapter(handler)
    await adapter.list_all(ACCOUNTS, "/cuentas/activas", Account)
    assert seen == ["/api/cuentas/activas"]


async def test_connect_failure_is_network_error_after_one_attempt():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    adapter = _adapter(handler)
    with pytest.raises(NetworkError) as exc:
        await adapter.get_by_id(ACCOUNTS, "/cuentas/1", Account)

    assert len(attempts) == 1
    assert exc.value.context.operation is Operation.GET_BY_ID
    assert exc.value.context.path == "/cuentas/1"


async def test_timeout_is_network_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(NetworkError):
        await _adapter(handler).list_all(ACCOUNTS, "/cuentas", Account)


async def test_plain_text_failure_carries_server_message():
    adapter = _adapter(lambda request: httpx.Response(400, text="Saldo insuficiente"))
    payload = NewTransaction(account_id=1, amount=Decimal("500.00"))

    with pytest.raises(ServerError) as exc:
        await adapter.create(EntityKind.TRANSACTIONS, "/transacciones/retiro", payload, None)

    assert exc.value.status == 400
    assert exc.value.user_message == "Saldo insuficiente"


async def test_json_failure_carries_error_field():
    adapter = _adapter(lambda request: _json(401, '{"error": "Credenciales inválidas"}'))
    with pytest.raises(ServerError) as exc:
        await adapter.get_by_id(EntityKind.USERS, "/usuarios/1", Account)
    assert exc.value.server_message == "Credenciales inválidas"


async def test_failure_without_body_shows_status():
    adapter = _adapter(lambda request: httpx.Response(500))
    with pytest.raises(ServerError) as exc:
        await adapter.delete(ACCOUNTS, "/cuentas/1")
    assert exc.value.server_message is None
    assert exc.value.user_message == "Código de error: 500"


@pytest.mark.parametrize("body", [
    '{"id": 1}',
    '{"not": "a list"}',
    "not json",
    "",
])
async def test_unexpected_shape_is_decode_error(body):
    adapter = _adapter(lambda request: _json(200, body))
    with pytest.raises(DecodeError):
        await adapter.list_all(ACCOUNTS, "/cuentas", Account)


async def test_create_sends_alias_payload():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        return _json(201, '{"id": 5}')

    adapter = _adapter(handler)
    payload = NewTransaction(account_id=1, amount=Decimal("50.00"))
    await adapter.create(EntityKind.TRANSACTIONS, "/transacciones/deposito", payload, None)

    assert captured == {"method": "POST", "body": {"cuentaId": 1, "monto": "50.00"}}


async def test_update_without_payload_sends_empty_object():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, text="ok")

    await _adapter(handler).update(
        EntityKind.NOTIFICATIONS, "/notificaciones/1/leer", None, None,
    )
    assert captured["body"] == {}


async def test_count_reads_count_key():
    adapter = _adapter(lambda request: _json(200, '{"count": 3}'))
    assert await adapter.count(EntityKind.UNREAD_COUNT, "/notificaciones/usuario/7/contar-no-leidas") == 3


@pytest.mark.parametrize("body", ['{"total": 3}', '{"count": -1}', "[3]"])
async def test_bad_count_is_decode_error(body):
    adapter = _adapter(lambda request: _json(200, body))
    with pytest.raises(DecodeError):
        await adapter.count(EntityKind.UNREAD_COUNT, "/x")


async def test_fetch_row_and_scalar():
    adapter = _adapter(lambda request: _json(200, "[2, 1, 300.25]"))
    assert await adapter.fetch_row(ACCOUNTS, "/cuentas/estadisticas") == [
        2, 1, Decimal("300.25"),
    ]
    adapter = _adapter(lambda request: _json(200, "12.30"))
    total = await adapter.fetch_value(EntityKind.TRANSACTIONS, "/x", Decimal)
    assert str(total) == "12.30"


def test_extract_server_message_variants():
    assert extract_server_message(httpx.Response(400, text="  ")) is None
    assert extract_server_message(httpx.Response(400, text='"Sin fondos"')) == "Sin fondos"
    assert extract_server_message(httpx.Response(400, text='{"message": "m"}')) == "m"
    assert extract_server_message(httpx.Response(400, text="[1]")) is None
