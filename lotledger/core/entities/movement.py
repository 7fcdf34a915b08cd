"""
Movement ledger entities.

A movement is a tagged record: IN movements create exactly one lot, OUT
movements carry the per-lot draws they consumed. The ledger is append-only.
"""

import math
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Literal
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

# Absolute tolerance for comparing float quantities
QUANTITY_EPSILON = 1e-9


def quantities_equal(a: float, b: float) -> bool:
    """Compare two quantities allowing for float rounding."""
    return math.isclose(a, b, rel_tol=1e-12, abs_tol=QUANTITY_EPSILON)


class MovementDirection(str, Enum):
    """Direction of a stock movement."""

    IN = "IN"
    OUT = "OUT"


class LotDraw(BaseModel):
    """Quantity taken from one lot by an OUT movement."""

    lot_id: str
    quantity: float = Field(gt=0, allow_inf_nan=False)
    unit_cost: float = Field(ge=0, allow_inf_nan=False)

    @property
    def value(self) -> float:
        return self.quantity * self.unit_cost


class _MovementBase(BaseModel):
    movement_id: str = Field(default_factory=lambda: uuid4().hex)
    business_id: str
    item_id: str
    quantity: float = Field(gt=0, allow_inf_nan=False)
    counterparty: str | None = None  # supplier for IN, recipient for OUT
    purpose: str | None = None
    notes: str | None = None
    actor: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class InMovement(_MovementBase):
    """Receipt of stock; creates the lot identified by lot_id."""

    direction: Literal[MovementDirection.IN] = MovementDirection.IN
    lot_id: str
    unit_cost: float = Field(ge=0, allow_inf_nan=False)

    @property
    def total(self) -> float:
        return self.quantity * self.unit_cost


class OutMovement(_MovementBase):
    """
    Issue of stock.

    Movements committed by the ledger always carry explicit draws. Draws may
    only be missing on imported legacy records, which the aggregator then
    consumes FIFO.
    """

    direction: Literal[MovementDirection.OUT] = MovementDirection.OUT
    draws: list[LotDraw] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_draws_total(self) -> "OutMovement":
        if self.draws:
            drawn = sum(d.quantity for d in self.draws)
            if not quantities_equal(drawn, self.quantity):
                raise ValueError(
                    f"draws sum to {drawn}, movement quantity is {self.quantity}"
                )
        return self

    @property
    def has_explicit_draws(self) -> bool:
        return bool(self.draws)

    @property
    def total(self) -> float:
        return sum(d.value for d in self.draws)


MovementEntry = Annotated[InMovement | OutMovement, Field(discriminator="direction")]
