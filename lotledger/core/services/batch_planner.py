"""
Batch selection planner.

Turns a requested quantity, or explicit per-lot quantities, into a draw
plan over the open lots of one item. Plans are advisory: they describe the
lots as read at planning time and are re-validated by the committer.
"""

import math
from collections.abc import Mapping, Sequence

from lotledger.config import get_logger
from lotledger.core.entities.lot import Lot
from lotledger.core.entities.movement import QUANTITY_EPSILON, quantities_equal
from lotledger.core.entities.plan import DrawPlan, PlanMode, PlannedDraw
from lotledger.core.exceptions import ShortfallError, ValidationError

logger = get_logger(__name__)


class BatchSelectionPlanner:
    """
    Builds draw plans for outbound movements.

    Two distinct modes:
    1. FIFO: oldest lots first, never a partial plan
    2. Manual: caller-chosen quantities per lot, validated and put in FIFO order

    Pure service -- works on the lots it is given and never reads storage.
    """

    def plan_fifo(
        self,
        business_id: str,
        item_id: str,
        lots: Sequence[Lot],
        requested_quantity: float,
    ) -> DrawPlan:
        """
        Plan a FIFO draw of requested_quantity.

        Raises:
            ValidationError: requested_quantity is not a positive finite number.
            ShortfallError: the open lots hold less than requested.
        """
        _require_positive("requested_quantity", requested_quantity)

        draws: list[PlannedDraw] = []
        needed = requested_quantity
        for lot in _fifo_order(lots, item_id):
            if needed <= QUANTITY_EPSILON:
                break
            take = min(lot.remaining_quantity, needed)
            draws.append(
                PlannedDraw(lot_id=lot.lot_id, quantity=take, unit_cost=lot.unit_cost)
            )
            needed -= take

        if needed > QUANTITY_EPSILON:
            available = requested_quantity - needed
            logger.info(
                "fifo_plan_shortfall",
                business_id=business_id,
                item_id=item_id,
                requested=requested_quantity,
                available=available,
            )
            raise ShortfallError(item_id, requested_quantity, available)

        plan = DrawPlan(
            business_id=business_id,
            item_id=item_id,
            mode=PlanMode.FIFO,
            draws=draws,
        )
        logger.debug(
            "fifo_plan_built",
            item_id=item_id,
            quantity=plan.quantity,
            lots=len(draws),
        )
        return plan

    def plan_manual(
        self,
        business_id: str,
        item_id: str,
        lots: Sequence[Lot],
        lot_quantities: Mapping[str, float],
        declared_quantity: float | None = None,
    ) -> DrawPlan:
        """
        Validate caller-chosen lot quantities and build a plan from them.

        Zero quantities are dropped. When declared_quantity is given it must
        match the sum of the remaining quantities, otherwise the sum is the
        planned total.

        Raises:
            ValidationError: unknown or exhausted lot, quantity out of range,
                nothing selected, or declared total mismatch.
        """
        open_lots = {lot.lot_id: lot for lot in _fifo_order(lots, item_id)}

        selected: dict[str, float] = {}
        for lot_id, quantity in lot_quantities.items():
            if not math.isfinite(quantity):
                raise ValidationError(f"lot_quantities.{lot_id}", "must be a finite number", quantity)
            if quantity < 0:
                raise ValidationError(f"lot_quantities.{lot_id}", "must not be negative", quantity)
            if quantity <= QUANTITY_EPSILON:
                continue

            lot = open_lots.get(lot_id)
            if lot is None:
                raise ValidationError(
                    f"lot_quantities.{lot_id}",
                    f"not an open lot of item {item_id}",
                    lot_id,
                )
            if quantity > lot.remaining_quantity and not quantities_equal(
                quantity, lot.remaining_quantity
            ):
                raise ValidationError(
                    f"lot_quantities.{lot_id}",
                    f"exceeds remaining quantity {lot.remaining_quantity:g}",
                    quantity,
                )
            selected[lot_id] = min(quantity, lot.remaining_quantity)

        if not selected:
            raise ValidationError("lot_quantities", "no lot quantities selected")

        total = sum(selected.values())
        if declared_quantity is not None:
            _require_positive("requested_quantity", declared_quantity)
            if not quantities_equal(declared_quantity, total):
                raise ValidationError(
                    "requested_quantity",
                    f"selected lots sum to {total:g}, not {declared_quantity:g}",
                    declared_quantity,
                )

        # Lot order follows FIFO, not the order of the caller's map
        draws = [
            PlannedDraw(
                lot_id=lot.lot_id,
                quantity=selected[lot.lot_id],
                unit_cost=lot.unit_cost,
            )
            for lot in open_lots.values()
            if lot.lot_id in selected
        ]

        return DrawPlan(
            business_id=business_id,
            item_id=item_id,
            mode=PlanMode.MANUAL,
            draws=draws,
        )


def _fifo_order(lots: Sequence[Lot], item_id: str) -> list[Lot]:
    """Open lots of item_id, oldest receipt first."""
    return sorted(
        (lot for lot in lots if lot.item_id == item_id and not lot.is_exhausted),
        key=lambda lot: lot.received_at,
    )


def _require_positive(field: str, quantity: float) -> None:
    # NaN fails every comparison, so it must be rejected explicitly
    if not math.isfinite(quantity):
        raise ValidationError(field, "must be a finite number", quantity)
    if quantity <= 0:
        raise ValidationError(field, "must be greater than zero", quantity)
