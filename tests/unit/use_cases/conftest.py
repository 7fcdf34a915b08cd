"""Fixtures for use case tests: store doubles and a disabled lot cache."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lotledger.core.services.lot_cache import LotCache


@pytest.fixture
def mock_tx():
    """Transaction double handed out by mock_ledger_store.atomic()."""
    return AsyncMock()


@pytest.fixture
def mock_ledger_store(mock_tx):
    store = AsyncMock()
    store.atomic = MagicMock()
    store.atomic.return_value.__aenter__.return_value = mock_tx
    store.list_movements.return_value = []
    return store


@pytest.fixture
def mock_item_store(sample_item):
    store = AsyncMock()
    store.get_item.return_value = sample_item
    store.list_items.return_value = [sample_item]
    return store


@pytest.fixture
def lot_cache():
    return LotCache(ttl=60)
