"""Store Base — loading flag, error message and mutation ordering.

Invariants:
    - loading returns to False whatever the outcome
    - A failure leaves one human-readable message and re-raises unchanged
    - Serialized mutations apply in submission order even when responses
      resolve out of order
    - A superseded reload is discarded
"""

import asyncio

import pytest

from savings_client.core.domain_types import EntityKind, Operation
from savings_client.core.errors import ServerError
from savings_client.services.store_base import OperationStatus, StatusSnapshot, Store

from tests.services.async_helpers import settle


class _Store(Store):
    KIND = EntityKind.ACCOUNTS


async def test_track_sets_and_clears_loading():
    status = OperationStatus(EntityKind.ACCOUNTS)
    seen = []
    status.subscribe(seen.append)

    async with status.track(Operation.LIST):
        assert status.snapshot.loading

    assert seen[0].loading and seen[0].in_flight == 1
    assert status.snapshot == StatusSnapshot()


async def test_failure_sets_message_and_reraises():
    status = OperationStatus(EntityKind.TRANSACTIONS)
    error = ServerError(400, "Saldo insuficiente")

    with pytest.raises(ServerError) as exc:
        async with status.track(Operation.CREATE):
            raise error

    assert exc.value is error
    assert status.snapshot.loading is False
    assert status.snapshot.error_message == "Saldo insuficiente"
    assert status.snapshot.error_code == "SERVER_ERROR"


async def test_next_operation_clears_previous_error():
    status = OperationStatus(EntityKind.ACCOUNTS)
    with pytest.raises(ServerError):
        async with status.track(Operation.LIST):
            raise ServerError(500)

    async with status.track(Operation.LIST):
        assert status.snapshot.error_message is None


async def test_unexpected_errors_still_reset_loading():
    status = OperationStatus(EntityKind.ACCOUNTS)
    with pytest.raises(KeyError):
        async with status.track(Operation.LIST):
            raise KeyError("x")
    assert status.snapshot.loading is False
    assert status.snapshot.error_message is None


async def test_serialized_mutations_apply_in_submission_order():
    store = _Store(serialize_mutations=True)
    applied = []
    first_response = asyncio.get_running_loop().create_future()

    async def mutate(name, response):
        async with store._mutation(Operation.UPDATE):
            await response
            applied.append(name)

    second_response = asyncio.get_running_loop().create_future()
    second_response.set_result(None)
    first = asyncio.create_task(mutate("first", first_response))
    second = asyncio.create_task(mutate("second", second_response))
    await settle()
    assert store.in_flight
    assert applied == []

    first_response.set_result(None)
    await asyncio.gather(first, second)

    assert applied == ["first", "second"]
    assert not store.in_flight


async def test_superseded_reload_is_discarded():
    store = _Store()
    loop = asyncio.get_running_loop()
    older, newer = loop.create_future(), loop.create_future()

    older_task = asyncio.create_task(store._reload(older))
    newer_task = asyncio.create_task(store._reload(newer))
    await settle()

    newer.set_result("new")
    assert await newer_task == (True, "new")
    older.set_result("old")
    assert await older_task == (False, "old")
