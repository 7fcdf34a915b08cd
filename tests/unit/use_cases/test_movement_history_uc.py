"""Tests for MovementHistoryUseCase."""

from datetime import UTC, datetime, timedelta

import pytest

from lotledger.application.dto.requests import MovementHistoryRequest
from lotledger.application.use_cases.movement_history import MovementHistoryUseCase
from lotledger.core.entities import MovementDirection
from lotledger.core.interfaces.ledger_store import DirectionTotals, MovementTotals


@pytest.fixture
def use_case(mock_ledger_store):
    return MovementHistoryUseCase(ledger_store=mock_ledger_store)


@pytest.fixture
def totals():
    totals = MovementTotals()
    totals.totals[MovementDirection.IN] = DirectionTotals(count=2, quantity=150, value=1600)
    totals.totals[MovementDirection.OUT] = DirectionTotals(count=1, quantity=120, value=1240)
    return totals


class TestMovementHistory:
    async def test_query_is_built_from_request(self, use_case, mock_ledger_store, totals):
        mock_ledger_store.search_movements.return_value = []
        mock_ledger_store.summarize_movements.return_value = totals

        await use_case.execute(
            "biz-1",
            MovementHistoryRequest(
                item_id="item-1", direction="OUT", days=7, search="  kitchen ", limit=10
            ),
        )

        business_id, query = mock_ledger_store.search_movements.call_args[0]
        assert business_id == "biz-1"
        assert query.item_id == "item-1"
        assert query.direction is MovementDirection.OUT
        assert query.search == "kitchen"
        assert query.limit == 10
        expected_since = datetime.now(UTC) - timedelta(days=7)
        assert abs((query.since - expected_since).total_seconds()) < 5
        assert mock_ledger_store.summarize_movements.call_args[0][1] is query

    async def test_blank_search_is_ignored(self, use_case, mock_ledger_store, totals):
        mock_ledger_store.search_movements.return_value = []
        mock_ledger_store.summarize_movements.return_value = totals

        await use_case.execute("biz-1", MovementHistoryRequest(search="   "))

        query = mock_ledger_store.search_movements.call_args[0][1]
        assert query.search is None
        assert query.since is None
        assert query.direction is None

    async def test_response_carries_totals_and_paging(
        self, use_case, mock_ledger_store, totals, make_in, make_out
    ):
        mock_ledger_store.search_movements.return_value = [
            make_out("o1", 120, day=3, draws=[("A", 100, 10), ("B", 20, 12)]),
            make_in("B", 50, 12, day=2),
        ]
        mock_ledger_store.summarize_movements.return_value = totals

        result = await use_case.execute("biz-1", MovementHistoryRequest(limit=2))
        response = use_case.to_response(result)

        assert response.total == 3
        assert response.has_more is True
        assert response.totals_in.quantity == 150
        assert response.totals_out.value == 1240
        assert [m.direction for m in response.movements] == ["OUT", "IN"]
        assert response.movements[0].draws[1].lot_id == "B"
        assert response.movements[1].lot_id == "B"
