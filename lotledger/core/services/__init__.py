"""
Core business logic services.

Layer-pure services that depend only on:
- lotledger/core/entities/*
- lotledger/core/exceptions.py

NO infrastructure imports. Stores are read by the application layer and
their results passed in.
"""

from lotledger.core.services.batch_planner import BatchSelectionPlanner
from lotledger.core.services.fifo_aggregator import (
    AvailableLots,
    FifoAggregator,
    LotReplay,
    normalize_legacy_record,
)
from lotledger.core.services.lot_cache import LotCache
from lotledger.core.services.stock_levels import StockStatus, classify_stock_level

__all__ = [
    # FIFO Aggregator
    "FifoAggregator",
    "AvailableLots",
    "LotReplay",
    "normalize_legacy_record",
    # Planner
    "BatchSelectionPlanner",
    # Lot Cache
    "LotCache",
    # Stock Levels
    "StockStatus",
    "classify_stock_level",
]
