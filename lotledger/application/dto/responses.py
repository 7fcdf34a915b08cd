"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# --- Items ---


class ItemResponse(BaseModel):
    """Item response DTO."""

    id: str
    business_id: str
    name: str
    category: str | None = None
    unit_type: str
    units_per_pack: float
    min_stock_level: float | None = None
    created_at: datetime
    updated_at: datetime


class ItemListResponse(BaseModel):
    """List of items."""

    items: list[ItemResponse]
    total: int


# --- Lots ---


class LotResponse(BaseModel):
    """Lot response DTO."""

    lot_id: str
    item_id: str
    original_quantity: float
    remaining_quantity: float
    unit_cost: float
    remaining_value: float
    received_at: datetime
    source: str


class AvailableLotsResponse(BaseModel):
    """Open lots of an item in FIFO order."""

    business_id: str
    item_id: str
    lots: list[LotResponse]
    total_available: float
    total_value: float


# --- Plans ---


class PlannedDrawResponse(BaseModel):
    """One lot draw of a plan."""

    lot_id: str
    quantity: float
    unit_cost: float
    value: float


class DrawPlanResponse(BaseModel):
    """Advisory draw plan; resubmit it to the commit endpoint."""

    business_id: str
    item_id: str
    mode: str
    draws: list[PlannedDrawResponse]
    quantity: float
    total_value: float
    average_unit_cost: float
    planned_at: datetime


# --- Movements ---


class LotDrawResponse(BaseModel):
    """Quantity an OUT movement took from one lot."""

    lot_id: str
    quantity: float
    unit_cost: float
    value: float


class MovementResponse(BaseModel):
    """Ledger entry response DTO."""

    movement_id: str
    direction: str
    item_id: str
    quantity: float
    total: float
    lot_id: str | None = None  # IN only
    unit_cost: float | None = None  # IN only
    draws: list[LotDrawResponse] = Field(default_factory=list)  # OUT only
    counterparty: str | None = None
    purpose: str | None = None
    notes: str | None = None
    actor: str
    created_at: datetime


class CommitOutResponse(BaseModel):
    """Committed outbound movement and the lots it drew from, as updated."""

    movement: MovementResponse
    lots: list[LotResponse]


class CommitInResponse(BaseModel):
    """Committed receipt and the lot it created."""

    movement: MovementResponse
    lot: LotResponse


class DirectionTotalsResponse(BaseModel):
    """Totals of one movement direction."""

    count: int
    quantity: float
    value: float


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int
    limit: int
    offset: int
    has_more: bool


class MovementHistoryResponse(PaginatedResponse):
    """Page of movements, newest first, with totals over the whole filter."""

    movements: list[MovementResponse]
    totals_in: DirectionTotalsResponse
    totals_out: DirectionTotalsResponse


# --- Stock overview ---


class StockLevelResponse(BaseModel):
    """Current stock of one item."""

    item_id: str
    name: str
    category: str | None = None
    unit_type: str
    current_stock: float
    stock_value: float
    total_received: float
    total_issued: float
    open_lots: int
    min_stock_level: float | None = None
    status: str
    last_movement_at: datetime | None = None


class StockOverviewResponse(BaseModel):
    """Current stock of every item of a business."""

    items: list[StockLevelResponse]
    total_items: int
    total_value: float
    low_stock_count: int
    critical_stock_count: int


# --- Reconciliation / import ---


class LotDriftResponse(BaseModel):
    """A lot whose stored remaining quantity differs from the replay."""

    lot_id: str
    stored_remaining: float | None = None
    replayed_remaining: float | None = None
    difference: float


class ReconcileResponse(BaseModel):
    """Comparison of the lot store against a replay of the ledger."""

    business_id: str
    item_id: str
    consistent: bool
    issues: list[str]
    drifted_lots: list[LotDriftResponse]
    stored_available: float
    replayed_available: float


class ImportLegacyResponse(BaseModel):
    """Outcome of importing legacy movement records."""

    business_id: str
    item_id: str
    movements_imported: int
    lots_created: int
    total_available: float


# --- Health / errors ---


class ComponentHealthResponse(BaseModel):
    """Health of one dependency."""

    name: str
    available: bool
    error: str | None = None
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ComponentHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] | None = Field(
        default=None, description="Structured error context, e.g. lot shortfalls"
    )
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
