"""Tests for StockOverviewUseCase."""

from datetime import UTC, datetime

import pytest

from lotledger.application.dto.requests import StockOverviewRequest
from lotledger.application.use_cases.stock_overview import StockOverviewUseCase
from lotledger.core.entities import Item
from lotledger.core.services.stock_levels import StockStatus


@pytest.fixture
def items():
    return [
        Item(id="rice", business_id="biz-1", name="Rice", min_stock_level=40),
        Item(id="beans", business_id="biz-1", name="beans", min_stock_level=10),
        Item(id="oil", business_id="biz-1", name="Oil"),
    ]


@pytest.fixture
def use_case(mock_item_store, mock_ledger_store, items, make_lot):
    mock_item_store.list_items.return_value = items
    mock_ledger_store.get_lots.return_value = [
        make_lot("r1", 0, 10, day=1, original=100, item_id="rice"),
        make_lot("r2", 30, 12, day=2, original=50, item_id="rice"),
        make_lot("b1", 50, 2, day=1, original=50, item_id="beans"),
    ]
    mock_ledger_store.last_movement_times.return_value = {
        "rice": datetime(2024, 3, 5, tzinfo=UTC)
    }
    return StockOverviewUseCase(item_store=mock_item_store, ledger_store=mock_ledger_store)


class TestStockOverview:
    async def test_levels(self, use_case, mock_ledger_store):
        result = await use_case.execute("biz-1", StockOverviewRequest())

        levels = {level.item.id: level for level in result.levels}
        rice = levels["rice"]
        assert rice.current_stock == 30
        assert rice.stock_value == 360
        assert rice.total_received == 150
        assert rice.total_issued == 120
        assert rice.open_lots == 1
        assert rice.status is StockStatus.LOW
        assert rice.last_movement_at == datetime(2024, 3, 5, tzinfo=UTC)

        assert levels["beans"].status is StockStatus.GOOD
        # No lots and no minimum: empty is critical
        assert levels["oil"].status is StockStatus.CRITICAL
        assert levels["oil"].current_stock == 0

        mock_ledger_store.get_lots.assert_awaited_once_with("biz-1", include_exhausted=True)

    async def test_sorted_by_name_case_insensitively(self, use_case):
        result = await use_case.execute("biz-1", StockOverviewRequest())
        assert [level.item.name for level in result.levels] == ["beans", "Oil", "Rice"]

    async def test_sorted_by_stock(self, use_case):
        result = await use_case.execute("biz-1", StockOverviewRequest(sort_by="stock"))
        assert [level.item.id for level in result.levels] == ["beans", "rice", "oil"]

    async def test_sorted_by_status(self, use_case):
        result = await use_case.execute("biz-1", StockOverviewRequest(sort_by="status"))
        assert [level.status for level in result.levels] == [
            StockStatus.CRITICAL,
            StockStatus.LOW,
            StockStatus.GOOD,
        ]

    async def test_category_is_passed_to_item_store(self, use_case, mock_item_store):
        await use_case.execute("biz-1", StockOverviewRequest(category="Food"))
        assert mock_item_store.list_items.call_args.kwargs["category"] == "Food"

    async def test_response(self, use_case):
        response = use_case.to_response(await use_case.execute("biz-1", StockOverviewRequest()))

        assert response.total_items == 3
        assert response.total_value == 460
        assert response.low_stock_count == 1
        assert response.critical_stock_count == 1
