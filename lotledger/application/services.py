"""
Service factory functions for dependency injection.

This module wires configuration into the pure core services. Use cases
obtain their services from here unless a test injects its own.
"""

from lotledger.config import get_settings
from lotledger.core.services import (
    BatchSelectionPlanner,
    FifoAggregator,
    LotCache,
)

# Singleton service instances
_fifo_aggregator: FifoAggregator | None = None
_batch_planner: BatchSelectionPlanner | None = None
_lot_cache: LotCache | None = None


def get_fifo_aggregator() -> FifoAggregator:
    """Get or create the FIFO aggregator, using the configured default source."""
    global _fifo_aggregator
    if _fifo_aggregator is None:
        settings = get_settings()
        _fifo_aggregator = FifoAggregator(default_source=settings.ledger.default_source)
    return _fifo_aggregator


def get_batch_planner() -> BatchSelectionPlanner:
    """Get or create the batch selection planner."""
    global _batch_planner
    if _batch_planner is None:
        _batch_planner = BatchSelectionPlanner()
    return _batch_planner


def get_lot_cache() -> LotCache:
    """
    Get or create the available-lots cache.

    Shared by every use case so that a commit invalidates what the next
    read would otherwise serve.
    """
    global _lot_cache
    if _lot_cache is None:
        settings = get_settings()
        _lot_cache = LotCache(ttl=settings.ledger.lot_cache_ttl)
    return _lot_cache


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _fifo_aggregator
    global _batch_planner
    global _lot_cache

    _fifo_aggregator = None
    _batch_planner = None
    _lot_cache = None


__all__ = [
    # Factory functions
    "get_fifo_aggregator",
    "get_batch_planner",
    "get_lot_cache",
    # Reset
    "reset_services",
]
