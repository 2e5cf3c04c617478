"""Service test fixtures — fake remote service, wired client, manual clock.

Invariants:
    - Every test gets a fresh FakeState and a fresh in-memory session storage
    - The client reaches the fake through httpx.ASGITransport (no sockets)
    - Polling tests never sleep for real: ManualClock.advance() drives ticks
"""

import pytest
from httpx import ASGITransport

from savings_client.client import SavingsClient
from savings_client.config import Settings
from savings_client.infrastructure.remote_adapter import RemoteFetchAdapter
from savings_client.infrastructure.session_storage import InMemoryStorage

from tests.services.async_helpers import ManualClock
from tests.services.fake_backend import FakeState, create_fake_backend


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def fake_state():
    return FakeState()


@pytest.fixture
def transport(fake_state):
    return ASGITransport(app=create_fake_backend(fake_state))


@pytest.fixture
def settings():
    return Settings(_env_file=None, api_base_url="http://test/api", log_format="text")


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
async def adapter(transport):
    adapter = RemoteFetchAdapter.from_base_url("http://test/api", transport=transport)
    yield adapter
    await adapter.aclose()


@pytest.fixture
async def savings(settings, transport, storage, clock):
    """Wired client against the fake service, polling on the manual clock."""
    client = SavingsClient.from_settings(
        settings, transport=transport, storage=storage,
        sleep=clock.sleep, configure_logging=False,
    )
    async with client:
        yield client
