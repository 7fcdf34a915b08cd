"""Get Available Lots Use Case: the FIFO read model used before planning."""

from lotledger.application.dto.responses import AvailableLotsResponse
from lotledger.application.services import get_fifo_aggregator, get_lot_cache
from lotledger.application.use_cases.converters import available_lots_to_response
from lotledger.config import get_logger
from lotledger.core.exceptions import ItemNotFoundError
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.fifo_aggregator import AvailableLots, FifoAggregator
from lotledger.core.services.lot_cache import LotCache

logger = get_logger(__name__)


class GetAvailableLotsUseCase:
    """
    Replay an item's movement history into its open lots.

    Results are served from the lot cache while fresh. A replay that finds
    the history inconsistent raises DataIntegrityError and caches nothing.
    """

    def __init__(
        self,
        ledger_store: ILotLedgerStore | None = None,
        item_store: IItemStore | None = None,
        aggregator: FifoAggregator | None = None,
        lot_cache: LotCache | None = None,
    ):
        self._ledger_store = ledger_store
        self._item_store = item_store
        self._aggregator = aggregator
        self._lot_cache = lot_cache

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

    def _get_lot_cache(self) -> LotCache:
        if self._lot_cache is None:
            self._lot_cache = get_lot_cache()
        return self._lot_cache

    async def execute(self, business_id: str, item_id: str) -> AvailableLots:
        """Open lots of the item, oldest first, with their total."""
        cache = self._get_lot_cache()
        cached = cache.get(business_id, item_id)
        if cached is not None:
            logger.debug("available_lots_cache_hit", business_id=business_id, item_id=item_id)
            return cached

        # Taken before reading so a commit during the replay discards our put
        generation = cache.generation(business_id, item_id)

        item_store = await self._get_item_store()
        if await item_store.get_item(business_id, item_id) is None:
            raise ItemNotFoundError(item_id, business_id)

        ledger_store = await self._get_ledger_store()
        movements = await ledger_store.list_movements(business_id, item_id)
        available = self._get_aggregator().available_lots(business_id, item_id, movements)

        cache.put(available, generation)
        logger.debug(
            "available_lots_replayed",
            business_id=business_id,
            item_id=item_id,
            movements=len(movements),
            open_lots=len(available.lots),
            total_available=available.total_available,
        )
        return available

    def to_response(self, result: AvailableLots) -> AvailableLotsResponse:
        return available_lots_to_response(result)
