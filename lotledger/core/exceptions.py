"""
Domain exceptions for the lot ledger.

Planning errors never touch persisted state; commit errors are raised
inside the write transaction and guarantee that nothing was written.
"""

from dataclasses import dataclass
from typing import Any


class LedgerError(Exception):
    """Base exception for all lot ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Stock Exceptions
class StockError(LedgerError):
    """Base exception for stock availability problems."""

    pass


class ShortfallError(StockError):
    """A FIFO plan cannot be satisfied from the currently visible lots."""

    def __init__(self, item_id: str, requested: float, available: float):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Cannot plan {requested:g} of item {item_id}: only {available:g} "
            f"available (short by {self.shortfall:g})",
            code="SHORTFALL",
            details={
                "item_id": item_id,
                "requested": requested,
                "available": available,
                "shortfall": self.shortfall,
            },
        )


@dataclass(frozen=True)
class LotShortfall:
    """One lot that could not cover its planned draw at commit time."""

    lot_id: str
    requested: float
    available: float

    @property
    def shortfall(self) -> float:
        return self.requested - self.available

    def to_dict(self) -> dict[str, Any]:
        return {
            "lot_id": self.lot_id,
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.shortfall,
        }


class InsufficientStockError(StockError):
    """Live lot quantities no longer cover the plan. Replan and retry."""

    def __init__(self, item_id: str, shortfalls: list[LotShortfall]):
        self.item_id = item_id
        self.shortfalls = shortfalls
        lots = ", ".join(
            f"{s.lot_id} (requested {s.requested:g}, available {s.available:g})"
            for s in shortfalls
        )
        super().__init__(
            f"Insufficient stock for item {item_id} in lot(s): {lots}",
            code="INSUFFICIENT_STOCK",
            details={
                "item_id": item_id,
                "lots": [s.to_dict() for s in shortfalls],
                "shortfall": sum(s.shortfall for s in shortfalls),
            },
        )


class CommitConflictError(StockError):
    """Storage write conflicts persisted past the bounded retry."""

    def __init__(self, item_id: str, attempts: int):
        super().__init__(
            f"Commit for item {item_id} kept conflicting after {attempts} attempt(s)",
            code="COMMIT_CONFLICT",
            details={"item_id": item_id, "attempts": attempts},
        )


class DataIntegrityError(LedgerError):
    """Replaying the movement ledger produced an impossible state."""

    def __init__(self, item_id: str, issues: list[str]):
        self.item_id = item_id
        self.issues = issues
        super().__init__(
            f"Ledger replay for item {item_id} is inconsistent: {'; '.join(issues)}",
            code="DATA_INTEGRITY",
            details={"item_id": item_id, "issues": issues},
        )


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class NotFoundError(StorageError):
    """Referenced record does not exist."""

    pass


class ItemNotFoundError(NotFoundError):
    """Item not found for the business."""

    def __init__(self, item_id: str, business_id: str | None = None):
        super().__init__(
            f"Item not found: {item_id}",
            code="ITEM_NOT_FOUND",
            details={"item_id": item_id, "business_id": business_id},
        )


class TransactionConflictError(StorageError):
    """The write transaction could not obtain the database lock."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Write conflict during {operation}: {error}",
            code="TRANSACTION_CONFLICT",
            details={"operation": operation, "error": error},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )
