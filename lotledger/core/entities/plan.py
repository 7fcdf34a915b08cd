"""Draw plan entities produced by the batch selection planner."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class PlanMode(str, Enum):
    """How a draw plan was produced."""

    FIFO = "fifo"
    MANUAL = "manual"


class PlannedDraw(BaseModel):
    """One lot and the quantity the plan takes from it."""

    lot_id: str
    quantity: float = Field(gt=0, allow_inf_nan=False)
    unit_cost: float = Field(ge=0, allow_inf_nan=False)  # as read at plan time

    @property
    def value(self) -> float:
        return self.quantity * self.unit_cost


class DrawPlan(BaseModel):
    """
    Advisory list of lot draws for an outbound movement.

    Quantities reflect the lots at planning time only; the committer
    re-validates every draw against live lot state.
    """

    business_id: str
    item_id: str
    mode: PlanMode
    draws: list[PlannedDraw]
    planned_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def quantity(self) -> float:
        return sum(d.quantity for d in self.draws)

    @property
    def total_value(self) -> float:
        return sum(d.value for d in self.draws)

    @property
    def average_unit_cost(self) -> float:
        qty = self.quantity
        return self.total_value / qty if qty > 0 else 0.0
