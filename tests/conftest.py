"""Root conftest — shared test configuration."""

import os

import pytest

from savings_client.config import get_settings

# Ensure tests never talk to a real service or write a session file in the repo
os.environ.setdefault("SAVINGS_API_BASE_URL", "http://test/api")
os.environ.setdefault("SAVINGS_LOG_FORMAT", "text")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are lru_cached; every test sees its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
