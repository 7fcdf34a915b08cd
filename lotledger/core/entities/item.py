"""
Item domain entity.

Reference data describing a stock keeping unit. Items are created and
edited outside the ledger; the ledger only reads them.
"""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


class Item(BaseModel):
    """A trackable stock keeping unit owned by one business."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    business_id: str
    name: str
    category: str | None = None
    unit_type: str = "units"
    units_per_pack: float = Field(default=1.0, gt=0, allow_inf_nan=False)
    min_stock_level: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def strip_name(self) -> "Item":
        """Names are stored trimmed."""
        self.name = self.name.strip()
        return self

    def packs_to_units(self, packs: float, loose_units: float = 0.0) -> float:
        """Convert a pack + loose unit count to a quantity in base units."""
        return packs * self.units_per_pack + loose_units
