"""Movement History Use Case: browse the ledger with filters and totals."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from lotledger.application.dto.requests import MovementHistoryRequest
from lotledger.application.dto.responses import (
    DirectionTotalsResponse,
    MovementHistoryResponse,
)
from lotledger.application.use_cases.converters import movement_to_response
from lotledger.config import get_logger
from lotledger.core.entities import MovementEntry
from lotledger.core.interfaces.ledger_store import (
    DirectionTotals,
    ILotLedgerStore,
    MovementQuery,
    MovementTotals,
)

logger = get_logger(__name__)


@dataclass
class MovementHistoryResult:
    """One page of movements plus totals over the whole filtered set."""

    movements: list[MovementEntry]
    totals: MovementTotals
    limit: int
    offset: int

    @property
    def total(self) -> int:
        return self.totals.count

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.movements) < self.total


class MovementHistoryUseCase:
    """List movements newest first."""

    def __init__(self, ledger_store: ILotLedgerStore | None = None):
        self._ledger_store = ledger_store

    async def _get_ledger_store(self) -> ILotLedgerStore:
        if self._ledger_store is None:
            from lotledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def execute(
        self, business_id: str, request: MovementHistoryRequest
    ) -> MovementHistoryResult:
        since = None
        if request.days:
            since = datetime.now(UTC) - timedelta(days=request.days)

        query = MovementQuery(
            item_id=request.item_id,
            direction=request.direction,
            since=since,
            search=request.search.strip() if request.search and request.search.strip() else None,
            limit=request.limit,
            offset=request.offset,
        )

        store = await self._get_ledger_store()
        movements = await store.search_movements(business_id, query)
        totals = await store.summarize_movements(business_id, query)

        logger.debug(
            "movement_history_listed",
            business_id=business_id,
            item_id=request.item_id,
            returned=len(movements),
            total=totals.count,
        )
        return MovementHistoryResult(
            movements=movements,
            totals=totals,
            limit=request.limit,
            offset=request.offset,
        )

    def to_response(self, result: MovementHistoryResult) -> MovementHistoryResponse:
        return MovementHistoryResponse(
            movements=[movement_to_response(m) for m in result.movements],
            totals_in=_totals_response(result.totals.inbound),
            totals_out=_totals_response(result.totals.outbound),
            total=result.total,
            limit=result.limit,
            offset=result.offset,
            has_more=result.has_more,
        )


def _totals_response(totals: DirectionTotals) -> DirectionTotalsResponse:
    return DirectionTotalsResponse(
        count=totals.count,
        quantity=totals.quantity,
        value=totals.value,
    )
