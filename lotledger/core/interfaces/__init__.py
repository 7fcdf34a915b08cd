"""Core interfaces (ports) for dependency injection."""

from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import (
    DirectionTotals,
    ILedgerTransaction,
    ILotLedgerStore,
    MovementQuery,
    MovementTotals,
)

__all__ = [
    # Storage interfaces
    "IItemStore",
    "ILotLedgerStore",
    "ILedgerTransaction",
    # Query helpers
    "MovementQuery",
    "MovementTotals",
    "DirectionTotals",
]
