"""
Import Legacy Movements Use Case.

Loads the loosely-typed movement records of one item from the previous
document store into the ledger. Records are normalized and replayed
strictly first, so nothing is written unless the whole history is sound.
OUT records without a lot reference are stored with the draws the FIFO
replay assigned them.
"""

from dataclasses import dataclass

from lotledger.application.dto.requests import ImportLegacyRequest
from lotledger.application.dto.responses import ImportLegacyResponse
from lotledger.application.services import get_fifo_aggregator
from lotledger.application.use_cases.base import LedgerWriteUseCase
from lotledger.config import get_logger
from lotledger.core.entities import InMovement, Lot, MovementEntry, OutMovement
from lotledger.core.exceptions import ItemNotFoundError, ValidationError
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.fifo_aggregator import FifoAggregator, LotReplay
from lotledger.core.services.lot_cache import LotCache

logger = get_logger(__name__)


@dataclass
class ImportLegacyResult:
    business_id: str
    item_id: str
    movements: list[MovementEntry]
    lots: list[Lot]

    @property
    def total_available(self) -> float:
        return sum(lot.remaining_quantity for lot in self.lots)


class ImportLegacyMovementsUseCase(LedgerWriteUseCase):
    """Import the full legacy history of an item with no ledger history yet."""

    def __init__(
        self,
        ledger_store: ILotLedgerStore | None = None,
        item_store: IItemStore | None = None,
        aggregator: FifoAggregator | None = None,
        lot_cache: LotCache | None = None,
    ):
        super().__init__(ledger_store=ledger_store, lot_cache=lot_cache)
        self._item_store = item_store
        self._aggregator = aggregator

    async def _get_item_store(self) -> IItemStore:
        if self._item_store is None:
            from lotledger.infrastructure.storage.sqlite import get_item_store

            self._item_store = await get_item_store()
        return self._item_store

    def _get_aggregator(self) -> FifoAggregator:
        if self._aggregator is None:
            self._aggregator = get_fifo_aggregator()
        return self._aggregator

    async def execute(
        self, business_id: str, item_id: str, request: ImportLegacyRequest
    ) -> ImportLegacyResult:
        if not request.actor.strip():
            raise ValidationError("actor", "must not be empty", request.actor)

        item_store = await self._get_item_store()
        if await item_store.get_item(business_id, item_id) is None:
            raise ItemNotFoundError(item_id, business_id)

        logger.info(
            "legacy_import_started",
            business_id=business_id,
            item_id=item_id,
            records=len(request.records),
        )
        entries, replay = self._get_aggregator().replay_records(
            business_id,
            item_id,
            request.records,
            default_actor=request.actor.strip(),
        )
        movements = _with_realized_draws(entries, replay)

        result = await self._with_conflict_retry(
            item_id, self._import_once, business_id, item_id, movements, replay.lots
        )

        self._get_lot_cache().invalidate(business_id, item_id)
        logger.info(
            "legacy_import_committed",
            business_id=business_id,
            item_id=item_id,
            movements=len(result.movements),
            lots=len(result.lots),
            total_available=result.total_available,
        )
        return result

    async def _import_once(
        self,
        business_id: str,
        item_id: str,
        movements: list[MovementEntry],
        lots: list[Lot],
    ) -> ImportLegacyResult:
        store = await self._get_ledger_store()
        async with store.atomic() as tx:
            if await tx.has_movements(business_id, item_id):
                raise ValidationError(
                    "item_id", "item already has ledger history; import is only for new items", item_id
                )
            # Lots go in with the remaining quantities the replay derived
            for lot in lots:
                await tx.insert_lot(lot)
            for movement in movements:
                await tx.append_movement(movement)

        return ImportLegacyResult(
            business_id=business_id,
            item_id=item_id,
            movements=movements,
            lots=lots,
        )

    def to_response(self, result: ImportLegacyResult) -> ImportLegacyResponse:
        return ImportLegacyResponse(
            business_id=result.business_id,
            item_id=result.item_id,
            movements_imported=len(result.movements),
            lots_created=len(result.lots),
            total_available=result.total_available,
        )


def _with_realized_draws(
    entries: list[MovementEntry], replay: LotReplay
) -> list[MovementEntry]:
    """Chronological movements, OUTs carrying the draws the replay realized."""
    ordered = sorted(
        entries,
        key=lambda m: (m.created_at, 0 if isinstance(m, InMovement) else 1),
    )
    result: list[MovementEntry] = []
    for m in ordered:
        if isinstance(m, OutMovement):
            m = m.model_copy(update={"draws": replay.realized_draws[m.movement_id]})
        result.append(m)
    return result
