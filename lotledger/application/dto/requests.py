"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Business rules (positive quantities, non-empty recipient, ...) are checked
by the use cases so that they surface as ledger ValidationErrors.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, FiniteFloat

from lotledger.core.entities.movement import MovementDirection
from lotledger.core.entities.plan import PlanMode

# --- Items ---


class CreateItemRequest(BaseModel):
    """Request to register a stock keeping unit."""

    name: str = Field(..., min_length=1, description="Display name")
    category: str | None = Field(default=None, description="Item category")
    unit_type: str = Field(
        default="units",
        description="Unit of measure",
        examples=["units", "kg", "liters"],
    )
    units_per_pack: FiniteFloat = Field(default=1.0, gt=0, description="Base units in one pack")
    min_stock_level: FiniteFloat | None = Field(
        default=None,
        ge=0,
        description="Reorder threshold in base units",
    )


# --- Planning ---


class PlanFifoRequest(BaseModel):
    """Request for an automatic oldest-first draw plan."""

    quantity: FiniteFloat = Field(..., description="Quantity to issue, in base units")


class PlanManualRequest(BaseModel):
    """Request to validate caller-chosen per-lot quantities."""

    lot_quantities: dict[str, FiniteFloat] = Field(
        ...,
        description="Quantity to draw per lot ID; zero entries are ignored",
        examples=[{"3f2a9c": 40, "8b41de": 10}],
    )
    quantity: FiniteFloat | None = Field(
        default=None,
        description="Declared total; must equal the sum of lot quantities when given",
    )


# --- Commit ---


class PlannedDrawRequest(BaseModel):
    """One lot draw of a submitted plan."""

    lot_id: str
    quantity: FiniteFloat
    unit_cost: FiniteFloat = Field(default=0.0, description="Unit cost seen at plan time")


class DrawPlanRequest(BaseModel):
    """A draw plan as returned by a planning endpoint."""

    item_id: str
    mode: PlanMode = PlanMode.FIFO
    draws: list[PlannedDrawRequest] = Field(default_factory=list)


class CommitOutRequest(BaseModel):
    """Request to commit an outbound movement from a draw plan."""

    plan: DrawPlanRequest
    recipient: str = Field(..., description="Who receives the stock")
    purpose: str = Field(..., description="Why the stock is issued")
    notes: str | None = Field(default=None, description="Additional notes")
    actor: str = Field(..., description="User committing the movement")


class ReceiveLotRequest(BaseModel):
    """Request to receive stock as a new lot.

    Either quantity, or packs (with optional loose_units), must be given.
    """

    item_id: str
    quantity: FiniteFloat | None = Field(default=None, description="Quantity in base units")
    packs: FiniteFloat | None = Field(default=None, ge=0, description="Whole packs received")
    loose_units: FiniteFloat = Field(default=0.0, ge=0, description="Units outside full packs")
    unit_cost: FiniteFloat = Field(..., description="Cost per base unit")
    source: str | None = Field(
        default=None,
        description="Supplier or reference",
        examples=["Direct Entry", "ACME Supplies"],
    )
    notes: str | None = None
    actor: str = Field(..., description="User receiving the stock")


# --- Reporting ---


class MovementHistoryRequest(BaseModel):
    """Filters for browsing the movement ledger."""

    item_id: str | None = None
    direction: MovementDirection | None = Field(default=None, description="Only IN or only OUT")
    days: int | None = Field(default=None, ge=1, description="Only the last N days")
    search: str | None = Field(
        default=None,
        description="Case-insensitive match on recipient/supplier, purpose, notes or actor",
    )
    limit: int = Field(default=50, ge=1, le=500)
    offset: int = Field(default=0, ge=0)


class StockOverviewRequest(BaseModel):
    """Options for the current stock overview."""

    category: str | None = None
    sort_by: Literal["name", "stock", "status"] = "name"


# --- Import ---


class ImportLegacyRequest(BaseModel):
    """Loosely-typed movement records of one item, in any order."""

    records: list[dict[str, Any]] = Field(..., min_length=1)
    actor: str = Field(..., description="Actor recorded where a record names none")
