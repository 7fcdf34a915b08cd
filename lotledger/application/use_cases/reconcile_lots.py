"""Reconcile Lots Use Case: compare stored lots with a replay of the ledger."""

from dataclasses import dataclass, field

from lotledger.application.dto.responses import LotDriftResponse, ReconcileResponse
from lotledger.application.services import get_fifo_aggregator
from lotledger.config import get_logger
from lotledger.core.entities import quantities_equal
from lotledger.core.exceptions import ItemNotFoundError
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.fifo_aggregator import FifoAggregator

logger = get_logger(__name__)


@dataclass
class LotDrift:
    """Stored and replayed remaining quantity of one lot. None means absent."""

    lot_id: str
    stored_remaining: float | None
    replayed_remaining: float | None

    @property
    def difference(self) -> float:
        return (self.stored_remaining or 0.0) - (self.replayed_remaining or 0.0)


@dataclass
class ReconcileResult:
    business_id: str
    item_id: str
    issues: list[str] = field(default_factory=list)
    drifted: list[LotDrift] = field(default_factory=list)
    stored_available: float = 0.0
    replayed_available: float = 0.0

    @property
    def consistent(self) -> bool:
        return not self.issues and not self.drifted


class ReconcileLotsUseCase:
    """Replay history leniently and report where the lot store disagrees."""

    def __init__(
        self,
        ledger_store: ILotLedgerStore | None = None,
        item_store: IItemStore | None = None,
        aggregator: FifoAggregator | None = None,
    ):
        self._ledger_store = ledger_store
        self._item_store = item_store
        self._aggregator = aggregator

    async def _get_ledger_store(self) -> ILotLedgerStore:
        if self._ledger_store is None:
            from lotledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def _get_item_store(self) -> IItemStore:
        if self._item_store is None:
            from lotledger.infrastructure.storage.sqlite import get_item_store

            self._item_store = await get_item_store()
        return self._item_store

    def _get_aggregator(self) -> FifoAggregator:
        if self._aggregator is None:
            self._aggregator = get_fifo_aggregator()
        return self._aggregator

    async def execute(self, business_id: str, item_id: str) -> ReconcileResult:
        item_store = await self._get_item_store()
        if await item_store.get_item(business_id, item_id) is None:
            raise ItemNotFoundError(item_id, business_id)

        store = await self._get_ledger_store()
        movements = await store.list_movements(business_id, item_id)
        stored = await store.get_lots(business_id, item_id, include_exhausted=True)
        replay = self._get_aggregator().replay(item_id, movements, strict=False)

        stored_by_id = {lot.lot_id: lot.remaining_quantity for lot in stored}
        replayed_by_id = {lot.lot_id: lot.remaining_quantity for lot in replay.lots}

        drifted = []
        for lot_id in [*replayed_by_id, *(k for k in stored_by_id if k not in replayed_by_id)]:
            s = stored_by_id.get(lot_id)
            r = replayed_by_id.get(lot_id)
            if s is None or r is None or not quantities_equal(s, r):
                drifted.append(LotDrift(lot_id, stored_remaining=s, replayed_remaining=r))

        result = ReconcileResult(
            business_id=business_id,
            item_id=item_id,
            issues=replay.issues,
            drifted=drifted,
            stored_available=sum(stored_by_id.values()),
            replayed_available=replay.total_available,
        )

        if result.consistent:
            logger.info("lots_reconciled", business_id=business_id, item_id=item_id)
        else:
            logger.warning(
                "lot_drift_detected",
                business_id=business_id,
                item_id=item_id,
                issues=len(result.issues),
                drifted=[d.lot_id for d in drifted],
            )
        return result

    def to_response(self, result: ReconcileResult) -> ReconcileResponse:
        return ReconcileResponse(
            business_id=result.business_id,
            item_id=result.item_id,
            consistent=result.consistent,
            issues=result.issues,
            drifted_lots=[
                LotDriftResponse(
                    lot_id=d.lot_id,
                    stored_remaining=d.stored_remaining,
                    replayed_remaining=d.replayed_remaining,
                    difference=d.difference,
                )
                for d in result.drifted
            ],
            stored_available=result.stored_available,
            replayed_available=result.replayed_available,
        )
