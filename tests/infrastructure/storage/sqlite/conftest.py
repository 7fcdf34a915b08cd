"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import lotledger.infrastructure.storage.sqlite.connection as conn_module
from lotledger.core.entities import Item
from lotledger.infrastructure.storage.sqlite.connection import close_pool
from lotledger.infrastructure.storage.sqlite.item_store import SQLiteItemStore
from lotledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert results and all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def db_pool(initialized_db: Path) -> AsyncGenerator[Path, None]:
    """Point the global connection pool at the temporary database."""
    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = initialized_db
    mock_settings.storage.pool_size = 2
    mock_settings.storage.busy_timeout = 5000

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield initialized_db
        finally:
            await close_pool()


@pytest.fixture
async def stored_item(db_pool) -> Item:
    store = SQLiteItemStore()
    return await store.create_item(
        Item(id="item-1", business_id="biz-1", name="Rice", min_stock_level=40)
    )
