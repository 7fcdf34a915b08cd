"""Lot (receipt batch) domain entity."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator


class Lot(BaseModel):
    """
    Remaining inventory of one receipt event.

    original_quantity and unit_cost are fixed when the lot is received;
    remaining_quantity only goes down, through OUT movements that draw from
    the lot. Exhausted lots are kept as audit trail.
    """

    lot_id: str
    business_id: str
    item_id: str
    original_quantity: float = Field(gt=0, allow_inf_nan=False)
    remaining_quantity: float = Field(ge=0, allow_inf_nan=False)
    unit_cost: float = Field(ge=0, allow_inf_nan=False)
    received_at: datetime
    source: str = "Direct Entry"
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def check_remaining(self) -> "Lot":
        if self.remaining_quantity > self.original_quantity:
            raise ValueError(
                f"remaining_quantity {self.remaining_quantity} exceeds "
                f"original_quantity {self.original_quantity}"
            )
        return self

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity <= 0

    @property
    def drawn_quantity(self) -> float:
        return self.original_quantity - self.remaining_quantity

    @property
    def remaining_value(self) -> float:
        """Value of what is left in the lot at its receipt cost."""
        return self.remaining_quantity * self.unit_cost
