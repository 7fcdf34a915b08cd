"""Storage infrastructure implementations."""

from lotledger.infrastructure.storage.sqlite import (
    SQLiteItemStore,
    SQLiteLotLedgerStore,
    close_pool,
    get_connection,
    get_immediate_transaction,
    get_pool,
    get_transaction,
)

__all__ = [
    # SQLite stores
    "SQLiteItemStore",
    "SQLiteLotLedgerStore",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_immediate_transaction",
]
