"""Application use cases."""

from lotledger.application.use_cases.commit_in import CommitInResult, CommitInUseCase
from lotledger.application.use_cases.commit_out import CommitOutResult, CommitOutUseCase
from lotledger.application.use_cases.get_available_lots import GetAvailableLotsUseCase
from lotledger.application.use_cases.import_legacy_movements import (
    ImportLegacyMovementsUseCase,
    ImportLegacyResult,
)
from lotledger.application.use_cases.manage_items import (
    CreateItemUseCase,
    GetItemUseCase,
    ListItemsUseCase,
)
from lotledger.application.use_cases.movement_history import (
    MovementHistoryResult,
    MovementHistoryUseCase,
)
from lotledger.application.use_cases.plan_movement import PlanFifoUseCase, PlanManualUseCase
from lotledger.application.use_cases.reconcile_lots import ReconcileLotsUseCase, ReconcileResult
from lotledger.application.use_cases.stock_overview import (
    StockLevel,
    StockOverviewResult,
    StockOverviewUseCase,
)

__all__ = [
    "CreateItemUseCase",
    "GetItemUseCase",
    "ListItemsUseCase",
    "GetAvailableLotsUseCase",
    "PlanFifoUseCase",
    "PlanManualUseCase",
    "CommitOutUseCase",
    "CommitOutResult",
    "CommitInUseCase",
    "CommitInResult",
    "MovementHistoryUseCase",
    "MovementHistoryResult",
    "StockOverviewUseCase",
    "StockOverviewResult",
    "StockLevel",
    "ReconcileLotsUseCase",
    "ReconcileResult",
    "ImportLegacyMovementsUseCase",
    "ImportLegacyResult",
]
