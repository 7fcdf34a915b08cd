"""Fixtures running the use cases against a real migrated database."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import lotledger.infrastructure.storage.sqlite.connection as conn_module
from lotledger.application.dto.requests import CreateItemRequest
from lotledger.application.use_cases import CreateItemUseCase
from lotledger.core.entities import Item
from lotledger.infrastructure.storage.sqlite.connection import close_pool
from lotledger.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
async def ledger_db(tmp_path: Path) -> AsyncGenerator[Path, None]:
    """Migrated temporary database behind the global connection pool."""
    db_path = tmp_path / "ledger.db"
    results = await initialize_database(db_path, create_backup_before=False)
    assert all(r.success for r in results)

    conn_module._pool = None
    mock_settings = MagicMock()
    mock_settings.storage.db_path = db_path
    mock_settings.storage.pool_size = 2
    mock_settings.storage.busy_timeout = 5000

    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield db_path
        finally:
            await close_pool()


@pytest.fixture
async def rice(ledger_db) -> Item:
    return await CreateItemUseCase().execute(
        "biz-1",
        CreateItemRequest(name="Rice 25kg", category="Food", units_per_pack=10, min_stock_level=40),
    )
