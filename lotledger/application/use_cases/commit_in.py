"""Commit In Use Case: receive stock as a new lot."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from lotledger.application.dto.requests import ReceiveLotRequest
from lotledger.application.dto.responses import CommitInResponse
from lotledger.application.use_cases.base import LedgerWriteUseCase
from lotledger.application.use_cases.converters import lot_to_response, movement_to_response
from lotledger.config import get_logger, get_settings
from lotledger.core.entities import InMovement, Item, Lot
from lotledger.core.exceptions import ItemNotFoundError, ValidationError
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.lot_cache import LotCache

logger = get_logger(__name__)


@dataclass
class CommitInResult:
    """Result of receiving stock."""

    movement: InMovement
    lot: Lot


class CommitInUseCase(LedgerWriteUseCase):
    """Create one lot and its IN movement in a single transaction."""

    def __init__(
        self,
        ledger_store: ILotLedgerStore | None = None,
        item_store: IItemStore | None = None,
        lot_cache: LotCache | None = None,
    ):
        super().__init__(ledger_store=ledger_store, lot_cache=lot_cache)
        self._item_store = item_store

    async def _get_item_store(self) -> IItemStore:
        if self._item_store is None:
            from lotledger.infrastructure.storage.sqlite import get_item_store

            self._item_store = await get_item_store()
        return self._item_store

    async def execute(self, business_id: str, request: ReceiveLotRequest) -> CommitInResult:
        """Receive stock given either as a quantity or as packs plus loose units."""
        if request.quantity is not None and request.packs is not None:
            raise ValidationError("quantity", "give either quantity or packs, not both")

        item_store = await self._get_item_store()
        item = await item_store.get_item(business_id, request.item_id)
        if item is None:
            raise ItemNotFoundError(request.item_id, business_id)

        if request.packs is not None:
            quantity = item.packs_to_units(request.packs, request.loose_units)
        elif request.quantity is not None:
            quantity = request.quantity
        else:
            raise ValidationError("quantity", "quantity or packs is required")

        return await self.receive(
            item,
            quantity=quantity,
            unit_cost=request.unit_cost,
            source=request.source,
            actor=request.actor,
            notes=request.notes,
        )

    async def receive(
        self,
        item: Item,
        quantity: float,
        unit_cost: float,
        source: str | None,
        actor: str,
        notes: str | None = None,
    ) -> CommitInResult:
        """
        Receive quantity of item at unit_cost.

        Raises:
            ValidationError: non-finite or non-positive quantity, non-finite or
                negative cost, or blank actor.
        """
        if not math.isfinite(quantity):
            raise ValidationError("quantity", "must be a finite number", quantity)
        if quantity <= 0:
            raise ValidationError("quantity", "must be greater than zero", quantity)
        if not math.isfinite(unit_cost):
            raise ValidationError("unit_cost", "must be a finite number", unit_cost)
        if unit_cost < 0:
            raise ValidationError("unit_cost", "must not be negative", unit_cost)
        if not actor or not actor.strip():
            raise ValidationError("actor", "must not be empty", actor)

        source = (source or "").strip() or get_settings().ledger.default_source
        logger.info(
            "commit_in_started",
            business_id=item.business_id,
            item_id=item.id,
            quantity=quantity,
            unit_cost=unit_cost,
        )

        result = await self._with_conflict_retry(
            item.id,
            self._commit_once,
            item,
            quantity,
            unit_cost,
            source,
            actor.strip(),
            notes.strip() if notes else None,
        )

        self._get_lot_cache().invalidate(item.business_id, item.id)
        logger.info(
            "commit_in_committed",
            business_id=item.business_id,
            item_id=item.id,
            lot_id=result.lot.lot_id,
            movement_id=result.movement.movement_id,
        )
        return result

    async def _commit_once(
        self,
        item: Item,
        quantity: float,
        unit_cost: float,
        source: str,
        actor: str,
        notes: str | None,
    ) -> CommitInResult:
        now = datetime.now(UTC)
        lot = Lot(
            lot_id=uuid4().hex,
            business_id=item.business_id,
            item_id=item.id,
            original_quantity=quantity,
            remaining_quantity=quantity,
            unit_cost=unit_cost,
            received_at=now,
            source=source,
            updated_at=now,
        )
        movement = InMovement(
            business_id=item.business_id,
            item_id=item.id,
            quantity=quantity,
            lot_id=lot.lot_id,
            unit_cost=unit_cost,
            counterparty=source,
            notes=notes,
            actor=actor,
            created_at=now,
        )

        store = await self._get_ledger_store()
        async with store.atomic() as tx:
            await tx.insert_lot(lot)
            await tx.append_movement(movement)

        return CommitInResult(movement=movement, lot=lot)

    def to_response(self, result: CommitInResult) -> CommitInResponse:
        return CommitInResponse(
            movement=movement_to_response(result.movement),
            lot=lot_to_response(result.lot),
        )
