"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services and stores
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from lotledger.application.dto.requests import (
    CommitOutRequest,
    CreateItemRequest,
    ImportLegacyRequest,
    MovementHistoryRequest,
    PlanFifoRequest,
    PlanManualRequest,
    ReceiveLotRequest,
    StockOverviewRequest,
)
from lotledger.application.dto.responses import (
    AvailableLotsResponse,
    CommitInResponse,
    CommitOutResponse,
    DrawPlanResponse,
    ErrorResponse,
    HealthResponse,
    MovementHistoryResponse,
    StockOverviewResponse,
)
from lotledger.application.services import (
    get_batch_planner,
    get_fifo_aggregator,
    get_lot_cache,
    reset_services,
)
from lotledger.application.use_cases import (
    CommitInUseCase,
    CommitOutUseCase,
    GetAvailableLotsUseCase,
    PlanFifoUseCase,
    PlanManualUseCase,
)

__all__ = [
    # Request DTOs
    "CreateItemRequest",
    "PlanFifoRequest",
    "PlanManualRequest",
    "CommitOutRequest",
    "ReceiveLotRequest",
    "MovementHistoryRequest",
    "StockOverviewRequest",
    "ImportLegacyRequest",
    # Response DTOs
    "AvailableLotsResponse",
    "DrawPlanResponse",
    "CommitOutResponse",
    "CommitInResponse",
    "MovementHistoryResponse",
    "StockOverviewResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "GetAvailableLotsUseCase",
    "PlanFifoUseCase",
    "PlanManualUseCase",
    "CommitOutUseCase",
    "CommitInUseCase",
    # Service factories
    "get_fifo_aggregator",
    "get_batch_planner",
    "get_lot_cache",
    "reset_services",
]
