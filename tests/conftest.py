"""Pytest configuration and shared fixtures for card balance tests."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from cardbalance.core.types import CardData, Transaction
from cardbalance.fallback.synthesizer import FallbackSynthesizer
from cardbalance.store.cache import MemoryCardStore
from cardbalance.sync.client import SyncClient
from cardbalance.transport.client import CardServiceTransport
from cardbalance.utils.error_handler import NetworkError


FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@asynccontextmanager
async def running_service(routes, release: Optional[asyncio.Event] = None):
    """Run a throwaway recognition service on localhost and yield its base URL.

    Handlers that stall should wait on ``release``; it is set before shutdown
    so the server does not wait on them.
    """
    app = web.Application()
    app.add_routes(routes)
    server = TestServer(app)
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        if release is not None:
            release.set()
        await server.close()


@pytest.fixture(scope="function")
def service():
    """Factory for a local recognition service (see ``running_service``)."""
    return running_service


@pytest.fixture(scope="function")
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture(scope="function")
def synthesizer(fixed_clock):
    """Seeded fallback synthesizer with a frozen clock."""
    return FallbackSynthesizer(seed=42, clock=fixed_clock, history_cap=5)


@pytest.fixture(scope="function")
def sample_transactions():
    """Two transactions, most recent first."""
    return [
        Transaction(id="t1", description="Coffee", amount=-4.5, date="2024-02-28T09:00:00.000Z"),
        Transaction(id="t2", description="Top up", amount=20.0, date="2024-02-27T09:00:00.000Z"),
    ]


@pytest.fixture(scope="function")
def sample_card(sample_transactions):
    """A cached card as the recognition service would return it."""
    return CardData(
        card_number="1234567890123456",
        balance="45.67",
        card_type="Gift Card",
        card_holder="Card Holder",
        expiry_date="12/25",
        issuer="Sample Store",
        last_transactions=sample_transactions,
    )


@pytest.fixture(scope="function")
def sample_card_payload():
    """Live service payload for a different card."""
    return {
        "cardNumber": "4000123412349876",
        "balance": "120.00",
        "cardType": "Visa",
        "cardHolder": "Jane Doe",
        "expiryDate": "08/27",
        "issuer": "Example Bank",
        "lastTransactions": [
            {"id": "a", "description": "Groceries", "amount": -32.1, "date": "2024-02-29T18:00:00.000Z"},
        ],
    }


@pytest.fixture(scope="function")
def memory_store():
    """Empty in-memory card store."""
    return MemoryCardStore()


@pytest.fixture(scope="function")
def failing_transport():
    """Transport whose calls always fail at the network level."""
    transport = MagicMock(spec=CardServiceTransport)
    transport.submit_image = AsyncMock(side_effect=NetworkError("Connection refused"))
    transport.refresh_balance = AsyncMock(side_effect=NetworkError("Connection refused"))
    transport.check_health = AsyncMock(return_value=False)
    transport.close = AsyncMock()
    return transport


@pytest.fixture(scope="function")
def offline_client(failing_transport, memory_store, synthesizer):
    """Sync client wired to a transport that never succeeds."""
    return SyncClient(failing_transport, memory_store, synthesizer)


@pytest.fixture(scope="function")
def image_file(tmp_path):
    """A small fake JPEG on disk."""
    path = tmp_path / "card.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg-data\xff\xd9")
    return path


# Configure pytest options
def pytest_configure(config):
    """Configure pytest with custom options."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Tests that spin up a local HTTP service
        if "integration" in item.name.lower() or "Integration" in str(item.cls):
            item.add_marker(pytest.mark.integration)

        if not item.get_closest_marker('integration') and not item.get_closest_marker('slow'):
            item.add_marker(pytest.mark.unit)
