"""
Abstract interfaces for the lot store and movement ledger.

Stores are pure persistence. All read-modify-write sequences that must be
atomic go through ILedgerTransaction, obtained from ILotLedgerStore.atomic().
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime

from lotledger.core.entities.lot import Lot
from lotledger.core.entities.movement import MovementDirection, MovementEntry


@dataclass
class MovementQuery:
    """Filters for browsing the movement ledger."""

    item_id: str | None = None
    direction: MovementDirection | None = None
    since: datetime | None = None
    search: str | None = None
    limit: int = 50
    offset: int = 0


@dataclass
class DirectionTotals:
    """Count, quantity and value of movements in one direction."""

    count: int = 0
    quantity: float = 0.0
    value: float = 0.0


@dataclass
class MovementTotals:
    """Aggregates over every movement matching a query (ignores paging)."""

    totals: dict[MovementDirection, DirectionTotals] = field(
        default_factory=lambda: {d: DirectionTotals() for d in MovementDirection}
    )

    @property
    def inbound(self) -> DirectionTotals:
        return self.totals[MovementDirection.IN]

    @property
    def outbound(self) -> DirectionTotals:
        return self.totals[MovementDirection.OUT]

    @property
    def count(self) -> int:
        return self.inbound.count + self.outbound.count


class ILedgerTransaction(ABC):
    """Operations available inside one atomic write unit."""

    @abstractmethod
    async def get_lot(self, business_id: str, lot_id: str) -> Lot | None:
        """Read a lot's live state under the write lock."""
        pass

    @abstractmethod
    async def update_lot_remaining(
        self, business_id: str, lot_id: str, drawn: float
    ) -> Lot:
        """Reduce a lot's remaining quantity by drawn."""
        pass

    @abstractmethod
    async def insert_lot(self, lot: Lot) -> Lot:
        """Create a lot."""
        pass

    @abstractmethod
    async def append_movement(self, movement: MovementEntry) -> MovementEntry:
        """Append a movement (and its draws) to the ledger."""
        pass

    @abstractmethod
    async def has_movements(self, business_id: str, item_id: str) -> bool:
        """Whether the item already has ledger history."""
        pass


class ILotLedgerStore(ABC):
    """Interface for lot and movement persistence."""

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[ILedgerTransaction]:
        """
        Open a write transaction.

        Commits when the block exits normally and rolls back when it raises.
        Raises TransactionConflictError if the write lock cannot be taken.
        """
        pass

    @abstractmethod
    async def get_lot(self, business_id: str, lot_id: str) -> Lot | None:
        """Get a lot by ID."""
        pass

    @abstractmethod
    async def get_lots(
        self,
        business_id: str,
        item_id: str | None = None,
        include_exhausted: bool = False,
    ) -> list[Lot]:
        """Get lots in FIFO order, for one item or the whole business."""
        pass

    @abstractmethod
    async def list_movements(
        self, business_id: str, item_id: str
    ) -> list[MovementEntry]:
        """Full movement history of an item, oldest first."""
        pass

    @abstractmethod
    async def search_movements(
        self, business_id: str, query: MovementQuery
    ) -> list[MovementEntry]:
        """Page of movements matching a query, newest first."""
        pass

    @abstractmethod
    async def summarize_movements(
        self, business_id: str, query: MovementQuery
    ) -> MovementTotals:
        """Totals per direction over all movements matching a query."""
        pass

    @abstractmethod
    async def last_movement_times(self, business_id: str) -> dict[str, datetime]:
        """Most recent movement time per item."""
        pass
