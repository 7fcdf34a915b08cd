"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from lotledger.application.dto.requests import (
    CommitOutRequest,
    CreateItemRequest,
    DrawPlanRequest,
    ImportLegacyRequest,
    MovementHistoryRequest,
    PlanFifoRequest,
    PlanManualRequest,
    PlannedDrawRequest,
    ReceiveLotRequest,
    StockOverviewRequest,
)
from lotledger.application.dto.responses import (
    AvailableLotsResponse,
    CommitInResponse,
    CommitOutResponse,
    ComponentHealthResponse,
    DirectionTotalsResponse,
    DrawPlanResponse,
    ErrorResponse,
    HealthResponse,
    ImportLegacyResponse,
    ItemListResponse,
    ItemResponse,
    LotDrawResponse,
    LotDriftResponse,
    LotResponse,
    MovementHistoryResponse,
    MovementResponse,
    PaginatedResponse,
    PlannedDrawResponse,
    ReconcileResponse,
    StockLevelResponse,
    StockOverviewResponse,
)

__all__ = [
    # Requests
    "CreateItemRequest",
    "PlanFifoRequest",
    "PlanManualRequest",
    "PlannedDrawRequest",
    "DrawPlanRequest",
    "CommitOutRequest",
    "ReceiveLotRequest",
    "MovementHistoryRequest",
    "StockOverviewRequest",
    "ImportLegacyRequest",
    # Responses
    "ItemResponse",
    "ItemListResponse",
    "LotResponse",
    "AvailableLotsResponse",
    "PlannedDrawResponse",
    "DrawPlanResponse",
    "LotDrawResponse",
    "MovementResponse",
    "CommitOutResponse",
    "CommitInResponse",
    "DirectionTotalsResponse",
    "PaginatedResponse",
    "MovementHistoryResponse",
    "StockLevelResponse",
    "StockOverviewResponse",
    "LotDriftResponse",
    "ReconcileResponse",
    "ImportLegacyResponse",
    "ComponentHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
