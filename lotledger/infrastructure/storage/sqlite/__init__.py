"""SQLite storage implementations."""

from lotledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_immediate_transaction,
    get_pool,
    get_transaction,
)
from lotledger.infrastructure.storage.sqlite.item_store import SQLiteItemStore
from lotledger.infrastructure.storage.sqlite.ledger_store import SQLiteLotLedgerStore

# Type aliases for convenience
ItemStore = SQLiteItemStore
LotLedgerStore = SQLiteLotLedgerStore

# Singleton instances
_item_store: SQLiteItemStore | None = None
_ledger_store: SQLiteLotLedgerStore | None = None


async def get_item_store() -> SQLiteItemStore:
    """Get singleton item store instance."""
    global _item_store
    if _item_store is None:
        _item_store = SQLiteItemStore()
    return _item_store


async def get_ledger_store() -> SQLiteLotLedgerStore:
    """Get singleton lot ledger store instance."""
    global _ledger_store
    if _ledger_store is None:
        _ledger_store = SQLiteLotLedgerStore()
    return _ledger_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_immediate_transaction",
    # Store classes
    "SQLiteItemStore",
    "SQLiteLotLedgerStore",
    # Type aliases
    "ItemStore",
    "LotLedgerStore",
    # Factory functions
    "get_item_store",
    "get_ledger_store",
]
