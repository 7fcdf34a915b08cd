"""Commit Out Use Case: execute a draw plan as one atomic OUT movement."""

import math
from dataclasses import dataclass

from lotledger.application.dto.requests import CommitOutRequest
from lotledger.application.dto.responses import CommitOutResponse
from lotledger.application.use_cases.base import LedgerWriteUseCase
from lotledger.application.use_cases.converters import lot_to_response, movement_to_response
from lotledger.config import get_logger
from lotledger.core.entities import (
    DrawPlan,
    Lot,
    LotDraw,
    OutMovement,
    PlannedDraw,
    quantities_equal,
)
from lotledger.core.exceptions import (
    InsufficientStockError,
    LotShortfall,
    ValidationError,
)
from lotledger.core.interfaces.ledger_store import ILedgerTransaction

logger = get_logger(__name__)


@dataclass
class CommitOutResult:
    """Result of committing an outbound movement."""

    movement: OutMovement
    lots: list[Lot]  # drawn lots after the commit


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, "must not be empty", value)
    return value.strip()


class CommitOutUseCase(LedgerWriteUseCase):
    """
    Commit an outbound movement from a draw plan.

    Lots are re-read under the write lock; if any no longer covers its draw
    the whole commit is rejected with InsufficientStockError and nothing is
    written. The caller then replans.
    """

    async def execute(self, business_id: str, request: CommitOutRequest) -> CommitOutResult:
        """Validate a submitted plan and commit it."""
        seen: set[str] = set()
        draws: list[PlannedDraw] = []
        for index, draw in enumerate(request.plan.draws):
            field = f"plan.draws[{index}]"
            if not math.isfinite(draw.quantity) or draw.quantity <= 0:
                raise ValidationError(
                    f"{field}.quantity", "must be a positive finite number", draw.quantity
                )
            if not math.isfinite(draw.unit_cost) or draw.unit_cost < 0:
                raise ValidationError(
                    f"{field}.unit_cost", "must be a non-negative finite number", draw.unit_cost
                )
            if draw.lot_id in seen:
                raise ValidationError(f"{field}.lot_id", "lot appears more than once", draw.lot_id)
            seen.add(draw.lot_id)
            draws.append(
                PlannedDraw(
                    lot_id=draw.lot_id,
                    quantity=draw.quantity,
                    unit_cost=draw.unit_cost,
                )
            )

        plan = DrawPlan(
            business_id=business_id,
            item_id=request.plan.item_id,
            mode=request.plan.mode,
            draws=draws,
        )
        return await self.commit(
            plan,
            recipient=request.recipient,
            purpose=request.purpose,
            notes=request.notes,
            actor=request.actor,
        )

    async def commit(
        self,
        plan: DrawPlan,
        recipient: str,
        purpose: str,
        notes: str | None,
        actor: str,
    ) -> CommitOutResult:
        """
        Commit a draw plan.

        Raises:
            ValidationError: empty plan, duplicate lots, blank recipient,
                purpose or actor, or a lot of another item.
            InsufficientStockError: live quantities no longer cover the plan.
            CommitConflictError: write conflicts outlasted every retry attempt.
        """
        recipient = _require_text("recipient", recipient)
        purpose = _require_text("purpose", purpose)
        actor = _require_text("actor", actor)
        if not plan.draws:
            raise ValidationError("plan.draws", "plan has no draws")
        lot_ids = [d.lot_id for d in plan.draws]
        if len(set(lot_ids)) != len(lot_ids):
            raise ValidationError("plan.draws", "lot appears more than once", lot_ids)

        logger.info(
            "commit_out_started",
            business_id=plan.business_id,
            item_id=plan.item_id,
            quantity=plan.quantity,
            mode=plan.mode.value,
            lots=lot_ids,
        )

        cache = self._get_lot_cache()
        try:
            result = await self._with_conflict_retry(
                plan.item_id,
                self._commit_once,
                plan,
                recipient,
                purpose,
                notes.strip() if notes else None,
                actor,
            )
        except InsufficientStockError as e:
            # Whatever was cached is stale; the caller is about to replan
            cache.invalidate(plan.business_id, plan.item_id)
            logger.warning(
                "commit_out_rejected",
                business_id=plan.business_id,
                item_id=plan.item_id,
                shortfalls=e.details["lots"],
            )
            raise

        cache.invalidate(plan.business_id, plan.item_id)
        logger.info(
            "commit_out_committed",
            business_id=plan.business_id,
            item_id=plan.item_id,
            movement_id=result.movement.movement_id,
            quantity=result.movement.quantity,
            total=result.movement.total,
        )
        return result

    async def _commit_once(
        self,
        plan: DrawPlan,
        recipient: str,
        purpose: str,
        notes: str | None,
        actor: str,
    ) -> CommitOutResult:
        store = await self._get_ledger_store()
        async with store.atomic() as tx:
            live = await self._revalidate(tx, plan)

            realized: list[LotDraw] = []
            updated: list[Lot] = []
            for draw in plan.draws:
                lot = await tx.update_lot_remaining(plan.business_id, draw.lot_id, draw.quantity)
                realized.append(
                    LotDraw(
                        lot_id=draw.lot_id,
                        quantity=draw.quantity,
                        unit_cost=live[draw.lot_id].unit_cost,
                    )
                )
                updated.append(lot)
                logger.debug(
                    "lot_drawn",
                    lot_id=draw.lot_id,
                    quantity=draw.quantity,
                    remaining=lot.remaining_quantity,
                )

            movement = OutMovement(
                business_id=plan.business_id,
                item_id=plan.item_id,
                quantity=plan.quantity,
                draws=realized,
                counterparty=recipient,
                purpose=purpose,
                notes=notes,
                actor=actor,
            )
            await tx.append_movement(movement)

        return CommitOutResult(movement=movement, lots=updated)

    @staticmethod
    async def _revalidate(tx: ILedgerTransaction, plan: DrawPlan) -> dict[str, Lot]:
        """Re-read every planned lot; collect all shortfalls before failing."""
        live: dict[str, Lot] = {}
        shortfalls: list[LotShortfall] = []
        for draw in plan.draws:
            lot = await tx.get_lot(plan.business_id, draw.lot_id)
            if lot is None:
                shortfalls.append(LotShortfall(draw.lot_id, draw.quantity, 0.0))
                continue
            if lot.item_id != plan.item_id:
                raise ValidationError(
                    "plan.draws",
                    f"lot {lot.lot_id} belongs to item {lot.item_id}, not {plan.item_id}",
                    lot.lot_id,
                )
            if lot.remaining_quantity < draw.quantity and not quantities_equal(
                lot.remaining_quantity, draw.quantity
            ):
                shortfalls.append(
                    LotShortfall(draw.lot_id, draw.quantity, lot.remaining_quantity)
                )
            live[lot.lot_id] = lot

        if shortfalls:
            raise InsufficientStockError(plan.item_id, shortfalls)
        return live

    def to_response(self, result: CommitOutResult) -> CommitOutResponse:
        return CommitOutResponse(
            movement=movement_to_response(result.movement),
            lots=[lot_to_response(lot) for lot in result.lots],
        )
