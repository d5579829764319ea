"""
Pytest configuration and shared fixtures.

Settings are reloaded before any quickchat imports so that environment
variables set for the test run are picked up.
"""

import itertools

import pytest

# Clear settings cache before any app imports to ensure test env vars are used
from quickchat.config import get_settings
get_settings.cache_clear()

from quickchat.ledger import MessageLedger


def sequential_ids(prefix: str = "00"):
    """Return an id factory producing prefix-led 10-digit ids: 0000000001, 0000000002, ..."""
    counter = itertools.count(1)
    width = 10 - len(prefix)
    return lambda: f"{prefix}{next(counter):0{width}d}"


@pytest.fixture
def store_path(tmp_path):
    """Path to a message store inside the test's temporary directory."""
    return tmp_path / "messages.json"


@pytest.fixture
def ledger():
    """Ledger with deterministic ids starting with '00'."""
    return MessageLedger(id_factory=sequential_ids("00"))


@pytest.fixture
def client(store_path):
    """Test client with a fresh ledger and a temporary message store."""
    from fastapi.testclient import TestClient

    from quickchat.main import app, get_store_path

    app.dependency_overrides[get_store_path] = lambda: str(store_path)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
