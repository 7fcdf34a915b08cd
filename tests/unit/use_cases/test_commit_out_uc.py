"""Tests for CommitOutUseCase."""

from unittest.mock import MagicMock

import pytest

from lotledger.application.dto.requests import CommitOutRequest
from lotledger.application.use_cases.commit_out import CommitOutResult, CommitOutUseCase
from lotledger.core.entities import DrawPlan, OutMovement, PlanMode, PlannedDraw
from lotledger.core.exceptions import (
    CommitConflictError,
    InsufficientStockError,
    TransactionConflictError,
    ValidationError,
)
from lotledger.core.services.fifo_aggregator import AvailableLots


@pytest.fixture
def use_case(mock_ledger_store, lot_cache):
    return CommitOutUseCase(ledger_store=mock_ledger_store, lot_cache=lot_cache)


@pytest.fixture
def live_lots(make_lot):
    return {"A": make_lot("A", 100, 10, day=1), "B": make_lot("B", 50, 12, day=2)}


@pytest.fixture
def wire_tx(mock_tx, live_lots):
    """Make the transaction double behave like the lot store."""

    async def get_lot(business_id, lot_id):
        lot = live_lots.get(lot_id)
        return lot.model_copy() if lot else None

    async def update_lot_remaining(business_id, lot_id, drawn):
        lot = live_lots[lot_id]
        lot.remaining_quantity -= drawn
        return lot.model_copy()

    mock_tx.get_lot.side_effect = get_lot
    mock_tx.update_lot_remaining.side_effect = update_lot_remaining
    return mock_tx


def _plan(*draws, item_id="item-1"):
    return DrawPlan(
        business_id="biz-1",
        item_id=item_id,
        mode=PlanMode.FIFO,
        draws=[PlannedDraw(lot_id=lot, quantity=q, unit_cost=c) for lot, q, c in draws],
    )


async def _commit(use_case, plan, **overrides):
    kwargs = {"recipient": "Kitchen", "purpose": "Lunch", "notes": None, "actor": "bob"}
    kwargs.update(overrides)
    return await use_case.commit(plan, **kwargs)


class TestCommitOut:
    async def test_successful_commit(self, use_case, wire_tx, live_lots):
        result = await _commit(use_case, _plan(("A", 100, 10), ("B", 20, 12)))

        assert live_lots["A"].remaining_quantity == 0
        assert live_lots["B"].remaining_quantity == 30
        assert [lot.remaining_quantity for lot in result.lots] == [0, 30]

        movement = wire_tx.append_movement.call_args[0][0]
        assert isinstance(movement, OutMovement)
        assert movement.quantity == 120
        assert movement.total == 1240
        assert movement.counterparty == "Kitchen"
        assert movement.purpose == "Lunch"
        assert movement.actor == "bob"
        assert [(d.lot_id, d.quantity) for d in movement.draws] == [("A", 100), ("B", 20)]

    async def test_unit_cost_comes_from_live_lot(self, use_case, wire_tx):
        # Plan claims a stale cost
        await _commit(use_case, _plan(("A", 10, 999)))

        movement = wire_tx.append_movement.call_args[0][0]
        assert movement.draws[0].unit_cost == 10

    async def test_insufficient_stock_writes_nothing(self, use_case, wire_tx, live_lots):
        live_lots["B"].remaining_quantity = 0

        with pytest.raises(InsufficientStockError) as exc_info:
            await _commit(use_case, _plan(("A", 10, 10), ("B", 30, 12)))

        lots = exc_info.value.details["lots"]
        assert lots == [{"lot_id": "B", "requested": 30, "available": 0, "shortfall": 30}]
        wire_tx.update_lot_remaining.assert_not_called()
        wire_tx.append_movement.assert_not_called()
        assert live_lots["A"].remaining_quantity == 100

    async def test_every_short_lot_is_reported(self, use_case, wire_tx, live_lots):
        live_lots["A"].remaining_quantity = 5

        with pytest.raises(InsufficientStockError) as exc_info:
            await _commit(use_case, _plan(("A", 10, 10), ("B", 60, 12), ("gone", 1, 1)))

        assert [s.lot_id for s in exc_info.value.shortfalls] == ["A", "B", "gone"]

    async def test_lot_of_another_item_is_rejected(self, use_case, wire_tx, live_lots, make_lot):
        live_lots["X"] = make_lot("X", 10, 1, item_id="item-2")

        with pytest.raises(ValidationError):
            await _commit(use_case, _plan(("X", 5, 1)))
        wire_tx.append_movement.assert_not_called()

    @pytest.mark.parametrize("field", ["recipient", "purpose", "actor"])
    async def test_required_text(self, use_case, wire_tx, field):
        with pytest.raises(ValidationError) as exc_info:
            await _commit(use_case, _plan(("A", 1, 10)), **{field: "   "})
        assert exc_info.value.details["field"] == field
        wire_tx.get_lot.assert_not_called()

    async def test_empty_plan(self, use_case, mock_ledger_store):
        with pytest.raises(ValidationError):
            await _commit(use_case, _plan())
        mock_ledger_store.atomic.assert_not_called()

    async def test_duplicate_lots(self, use_case, mock_ledger_store):
        with pytest.raises(ValidationError):
            await _commit(use_case, _plan(("A", 1, 10), ("A", 2, 10)))
        mock_ledger_store.atomic.assert_not_called()

    async def test_commit_invalidates_cache(self, use_case, wire_tx, lot_cache):
        lot_cache.put(AvailableLots(business_id="biz-1", item_id="item-1"), 0)

        await _commit(use_case, _plan(("A", 1, 10)))

        assert lot_cache.get("biz-1", "item-1") is None

    async def test_rejection_invalidates_cache(self, use_case, wire_tx, lot_cache, live_lots):
        live_lots["A"].remaining_quantity = 0
        lot_cache.put(AvailableLots(business_id="biz-1", item_id="item-1"), 0)

        with pytest.raises(InsufficientStockError):
            await _commit(use_case, _plan(("A", 1, 10)))

        assert lot_cache.get("biz-1", "item-1") is None

    async def test_business_errors_are_not_retried(self, use_case, wire_tx, live_lots,
                                                   mock_ledger_store):
        live_lots["A"].remaining_quantity = 0

        with pytest.raises(InsufficientStockError):
            await _commit(use_case, _plan(("A", 1, 10)))

        assert mock_ledger_store.atomic.call_count == 1


class TestCommitOutConflicts:
    async def test_conflict_is_retried(self, use_case, wire_tx, mock_ledger_store, live_lots):
        good_ctx = mock_ledger_store.atomic.return_value
        busy_ctx = MagicMock()
        busy_ctx.__aenter__.side_effect = TransactionConflictError("ledger_commit", "database is locked")
        mock_ledger_store.atomic.side_effect = [busy_ctx, good_ctx]

        result = await _commit(use_case, _plan(("A", 10, 10)))

        assert result.movement.quantity == 10
        assert mock_ledger_store.atomic.call_count == 2
        assert live_lots["A"].remaining_quantity == 90

    async def test_persistent_conflict_raises_commit_conflict(self, use_case, mock_ledger_store):
        busy_ctx = MagicMock()
        busy_ctx.__aenter__.side_effect = TransactionConflictError("ledger_commit", "database is locked")
        mock_ledger_store.atomic.return_value = busy_ctx

        with pytest.raises(CommitConflictError) as exc_info:
            await _commit(use_case, _plan(("A", 10, 10)))

        assert exc_info.value.code == "COMMIT_CONFLICT"
        assert mock_ledger_store.atomic.call_count == 3


class TestCommitOutExecute:
    async def test_execute_builds_plan_from_request(self, use_case, wire_tx):
        request = CommitOutRequest(
            plan={
                "item_id": "item-1",
                "mode": "manual",
                "draws": [{"lot_id": "B", "quantity": 5, "unit_cost": 12}],
            },
            recipient="Kitchen",
            purpose="Lunch",
            actor="bob",
        )

        result = await use_case.execute("biz-1", request)

        assert result.movement.business_id == "biz-1"
        assert result.movement.draws[0].lot_id == "B"

    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_execute_rejects_non_positive_draws(self, use_case, mock_ledger_store, quantity):
        request = CommitOutRequest(
            plan={"item_id": "item-1", "draws": [{"lot_id": "A", "quantity": quantity}]},
            recipient="Kitchen",
            purpose="Lunch",
            actor="bob",
        )

        with pytest.raises(ValidationError):
            await use_case.execute("biz-1", request)
        mock_ledger_store.atomic.assert_not_called()

    async def test_execute_rejects_negative_unit_cost(self, use_case, mock_ledger_store):
        request = CommitOutRequest(
            plan={
                "item_id": "item-1",
                "draws": [{"lot_id": "A", "quantity": 1, "unit_cost": -3}],
            },
            recipient="Kitchen",
            purpose="Lunch",
            actor="bob",
        )

        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute("biz-1", request)
        assert exc_info.value.details["field"] == "plan.draws[0].unit_cost"
        mock_ledger_store.atomic.assert_not_called()

    def test_to_response(self, use_case, make_lot):
        movement = OutMovement(
            business_id="biz-1",
            item_id="item-1",
            quantity=5,
            draws=[{"lot_id": "A", "quantity": 5, "unit_cost": 10}],
            actor="bob",
        )

        response = use_case.to_response(
            CommitOutResult(movement=movement, lots=[make_lot("A", 95, 10, original=100)])
        )

        assert response.movement.direction == "OUT"
        assert response.movement.total == 50
        assert response.lots[0].remaining_quantity == 95
