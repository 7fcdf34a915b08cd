"""Stock Overview Use Case: current stock, value and level status per item."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from lotledger.application.dto.requests import StockOverviewRequest
from lotledger.application.dto.responses import StockLevelResponse, StockOverviewResponse
from lotledger.config import get_logger, get_settings
from lotledger.core.entities import Item, Lot
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.stock_levels import StockStatus, classify_stock_level

logger = get_logger(__name__)

# Page size when walking every item of a business
_ITEM_PAGE = 500


@dataclass
class StockLevel:
    """Current stock of one item, derived from its lots."""

    item: Item
    lots: list[Lot] = field(default_factory=list)
    last_movement_at: datetime | None = None
    status: StockStatus = StockStatus.GOOD

    @property
    def current_stock(self) -> float:
        return sum(lot.remaining_quantity for lot in self.lots)

    @property
    def stock_value(self) -> float:
        return sum(lot.remaining_value for lot in self.lots)

    @property
    def total_received(self) -> float:
        return sum(lot.original_quantity for lot in self.lots)

    @property
    def total_issued(self) -> float:
        return sum(lot.drawn_quantity for lot in self.lots)

    @property
    def open_lots(self) -> int:
        return sum(1 for lot in self.lots if not lot.is_exhausted)


@dataclass
class StockOverviewResult:
    levels: list[StockLevel]

    @property
    def total_value(self) -> float:
        return sum(level.stock_value for level in self.levels)

    def count(self, status: StockStatus) -> int:
        return sum(1 for level in self.levels if level.status is status)


class StockOverviewUseCase:
    """Summarize current stock for every item of a business."""

    def __init__(
        self,
        item_store: IItemStore | None = None,
        ledger_store: ILotLedgerStore | None = None,
        critical_ratio: float | None = None,
    ):
        self._item_store = item_store
        self._ledger_store = ledger_store
        self._critical_ratio = critical_ratio

    async def _get_item_store(self) -> IItemStore:
        if self._item_store is None:
            from lotledger.infrastructure.storage.sqlite import get_item_store

            self._item_store = await get_item_store()
        return self._item_store

    async def _get_ledger_store(self) -> ILotLedgerStore:
        if self._ledger_store is None:
            from lotledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    async def _list_all_items(self, business_id: str, category: str | None) -> list[Item]:
        store = await self._get_item_store()
        items: list[Item] = []
        while True:
            page = await store.list_items(
                business_id, category=category, limit=_ITEM_PAGE, offset=len(items)
            )
            items.extend(page)
            if len(page) < _ITEM_PAGE:
                return items

    async def execute(
        self, business_id: str, request: StockOverviewRequest
    ) -> StockOverviewResult:
        ratio = self._critical_ratio
        if ratio is None:
            ratio = get_settings().ledger.critical_stock_ratio

        items = await self._list_all_items(business_id, request.category)
        ledger = await self._get_ledger_store()
        lots = await ledger.get_lots(business_id, include_exhausted=True)
        last_moves = await ledger.last_movement_times(business_id)

        lots_by_item: dict[str, list[Lot]] = defaultdict(list)
        for lot in lots:
            lots_by_item[lot.item_id].append(lot)

        levels = []
        for item in items:
            level = StockLevel(
                item=item,
                lots=lots_by_item.get(item.id, []),
                last_movement_at=last_moves.get(item.id),
            )
            level.status = classify_stock_level(level.current_stock, item.min_stock_level, ratio)
            levels.append(level)

        if request.sort_by == "stock":
            levels.sort(key=lambda lv: lv.current_stock, reverse=True)
        elif request.sort_by == "status":
            levels.sort(key=lambda lv: (lv.status.urgency, lv.item.name.lower()))
        else:
            levels.sort(key=lambda lv: lv.item.name.lower())

        result = StockOverviewResult(levels=levels)
        logger.info(
            "stock_overview_built",
            business_id=business_id,
            items=len(levels),
            critical=result.count(StockStatus.CRITICAL),
            low=result.count(StockStatus.LOW),
        )
        return result

    def to_response(self, result: StockOverviewResult) -> StockOverviewResponse:
        return StockOverviewResponse(
            items=[
                StockLevelResponse(
                    item_id=level.item.id,
                    name=level.item.name,
                    category=level.item.category,
                    unit_type=level.item.unit_type,
                    current_stock=level.current_stock,
                    stock_value=level.stock_value,
                    total_received=level.total_received,
                    total_issued=level.total_issued,
                    open_lots=level.open_lots,
                    min_stock_level=level.item.min_stock_level,
                    status=level.status.value,
                    last_movement_at=level.last_movement_at,
                )
                for level in result.levels
            ],
            total_items=len(result.levels),
            total_value=result.total_value,
            low_stock_count=result.count(StockStatus.LOW),
            critical_stock_count=result.count(StockStatus.CRITICAL),
        )
