"""Core domain entities."""

from lotledger.core.entities.item import Item
from lotledger.core.entities.lot import Lot
from lotledger.core.entities.movement import (
    QUANTITY_EPSILON,
    InMovement,
    LotDraw,
    MovementDirection,
    MovementEntry,
    OutMovement,
    quantities_equal,
)
from lotledger.core.entities.plan import DrawPlan, PlanMode, PlannedDraw

__all__ = [
    # Reference data
    "Item",
    # Lots
    "Lot",
    # Ledger
    "MovementDirection",
    "MovementEntry",
    "InMovement",
    "OutMovement",
    "LotDraw",
    "QUANTITY_EPSILON",
    "quantities_equal",
    # Planning
    "DrawPlan",
    "PlanMode",
    "PlannedDraw",
]
