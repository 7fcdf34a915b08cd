"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace these through
app.dependency_overrides.
"""

from functools import lru_cache

from lotledger.application.use_cases import (
    CommitInUseCase,
    CommitOutUseCase,
    CreateItemUseCase,
    GetAvailableLotsUseCase,
    GetItemUseCase,
    ImportLegacyMovementsUseCase,
    ListItemsUseCase,
    MovementHistoryUseCase,
    PlanFifoUseCase,
    PlanManualUseCase,
    ReconcileLotsUseCase,
    StockOverviewUseCase,
)
from lotledger.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Item use case dependencies
def get_create_item_use_case() -> CreateItemUseCase:
    """Get create item use case."""
    return CreateItemUseCase()


def get_get_item_use_case() -> GetItemUseCase:
    """Get item lookup use case."""
    return GetItemUseCase()


def get_list_items_use_case() -> ListItemsUseCase:
    """Get list items use case."""
    return ListItemsUseCase()


# Ledger use case dependencies
def get_available_lots_use_case() -> GetAvailableLotsUseCase:
    """Get available lots use case."""
    return GetAvailableLotsUseCase()


def get_plan_fifo_use_case() -> PlanFifoUseCase:
    """Get FIFO planning use case."""
    return PlanFifoUseCase()


def get_plan_manual_use_case() -> PlanManualUseCase:
    """Get manual planning use case."""
    return PlanManualUseCase()


def get_commit_out_use_case() -> CommitOutUseCase:
    """Get outbound commit use case."""
    return CommitOutUseCase()


def get_commit_in_use_case() -> CommitInUseCase:
    """Get receipt commit use case."""
    return CommitInUseCase()


def get_movement_history_use_case() -> MovementHistoryUseCase:
    """Get movement history use case."""
    return MovementHistoryUseCase()


def get_stock_overview_use_case() -> StockOverviewUseCase:
    """Get stock overview use case."""
    return StockOverviewUseCase()


def get_reconcile_lots_use_case() -> ReconcileLotsUseCase:
    """Get lot reconciliation use case."""
    return ReconcileLotsUseCase()


def get_import_legacy_use_case() -> ImportLegacyMovementsUseCase:
    """Get legacy import use case."""
    return ImportLegacyMovementsUseCase()
