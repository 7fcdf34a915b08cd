"""Tests for SQLite lot store and movement ledger."""

from datetime import UTC, datetime, timedelta

import aiosqlite
import pytest

from lotledger.core.entities import InMovement, Lot, LotDraw, MovementDirection, OutMovement
from lotledger.core.exceptions import DatabaseError, TransactionConflictError, ValidationError
from lotledger.core.interfaces.ledger_store import MovementQuery
from lotledger.infrastructure.storage.sqlite.ledger_store import SQLiteLotLedgerStore

T0 = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


def _lot(lot_id: str, quantity: float, unit_cost: float, day: int) -> Lot:
    at = T0 + timedelta(days=day)
    return Lot(
        lot_id=lot_id,
        business_id="biz-1",
        item_id="item-1",
        original_quantity=quantity,
        remaining_quantity=quantity,
        unit_cost=unit_cost,
        received_at=at,
        updated_at=at,
    )


def _receipt(lot: Lot, source: str = "ACME") -> InMovement:
    return InMovement(
        movement_id=f"in-{lot.lot_id}",
        business_id=lot.business_id,
        item_id=lot.item_id,
        quantity=lot.original_quantity,
        lot_id=lot.lot_id,
        unit_cost=lot.unit_cost,
        counterparty=source,
        actor="alice",
        created_at=lot.received_at,
    )


def _issue(movement_id: str, day: int, draws: list[tuple[str, float, float]], **kw) -> OutMovement:
    return OutMovement(
        movement_id=movement_id,
        business_id="biz-1",
        item_id="item-1",
        quantity=sum(q for _, q, _ in draws),
        draws=[LotDraw(lot_id=lot_id, quantity=q, unit_cost=c) for lot_id, q, c in draws],
        counterparty=kw.get("recipient", "Kitchen"),
        purpose=kw.get("purpose", "Lunch"),
        notes=kw.get("notes"),
        actor=kw.get("actor", "bob"),
        created_at=T0 + timedelta(days=day),
    )


@pytest.fixture
def store(stored_item):
    return SQLiteLotLedgerStore()


@pytest.fixture
async def seeded(store):
    """Lots A=100@10 (day 1) and B=50@12 (day 2) with their receipts."""
    async with store.atomic() as tx:
        for lot in (_lot("B", 50, 12, day=2), _lot("A", 100, 10, day=1)):
            await tx.insert_lot(lot)
            await tx.append_movement(_receipt(lot))
    return store


class TestLots:
    async def test_lots_in_fifo_order(self, seeded):
        lots = await seeded.get_lots("biz-1", "item-1")

        assert [lot.lot_id for lot in lots] == ["A", "B"]
        assert lots[0].received_at == T0 + timedelta(days=1)
        assert lots[0].source == "Direct Entry"

    async def test_update_lot_remaining(self, seeded):
        async with seeded.atomic() as tx:
            lot = await tx.update_lot_remaining("biz-1", "A", 40)

        assert lot.remaining_quantity == 60
        assert (await seeded.get_lot("biz-1", "A")).remaining_quantity == 60

    async def test_float_dust_snaps_to_zero(self, seeded):
        async with seeded.atomic() as tx:
            await tx.update_lot_remaining("biz-1", "A", 99.9)
            lot = await tx.update_lot_remaining("biz-1", "A", 0.1 - 1e-12)

        assert lot.remaining_quantity == 0
        assert [lot.lot_id for lot in await seeded.get_lots("biz-1", "item-1")] == ["B"]
        assert len(await seeded.get_lots("biz-1", include_exhausted=True)) == 2

    async def test_overdraw_is_refused(self, seeded):
        with pytest.raises(TransactionConflictError):
            async with seeded.atomic() as tx:
                await tx.update_lot_remaining("biz-1", "B", 50.5)

        assert (await seeded.get_lot("biz-1", "B")).remaining_quantity == 50

    async def test_failed_transaction_rolls_back_everything(self, seeded):
        with pytest.raises(RuntimeError):
            async with seeded.atomic() as tx:
                await tx.update_lot_remaining("biz-1", "A", 100)
                await tx.append_movement(_issue("o1", 3, [("A", 100, 10)]))
                raise RuntimeError("boom")

        assert (await seeded.get_lot("biz-1", "A")).remaining_quantity == 100
        assert len(await seeded.list_movements("biz-1", "item-1")) == 2

    async def test_duplicate_lot(self, seeded):
        with pytest.raises(DatabaseError):
            async with seeded.atomic() as tx:
                await tx.insert_lot(_lot("A", 1, 1, day=5))

    async def test_lots_of_other_business_are_invisible(self, seeded):
        assert await seeded.get_lot("biz-2", "A") is None
        assert await seeded.get_lots("biz-2") == []


class TestMovements:
    async def test_out_movement_round_trips_with_draws(self, seeded):
        async with seeded.atomic() as tx:
            await tx.append_movement(_issue("o1", 3, [("A", 100, 10), ("B", 20, 12)]))

        movements = await seeded.list_movements("biz-1", "item-1")

        assert [m.movement_id for m in movements] == ["in-A", "in-B", "o1"]
        out = movements[2]
        assert isinstance(out, OutMovement)
        assert [(d.lot_id, d.quantity, d.unit_cost) for d in out.draws] == [
            ("A", 100, 10),
            ("B", 20, 12),
        ]
        assert out.total == 1240
        assert isinstance(movements[0], InMovement)
        assert movements[0].counterparty == "ACME"

    async def test_out_without_draws_is_refused(self, seeded):
        movement = OutMovement(business_id="biz-1", item_id="item-1", quantity=5, actor="bob")
        with pytest.raises(ValidationError):
            async with seeded.atomic() as tx:
                await tx.append_movement(movement)

    async def test_draw_from_unknown_lot_is_refused(self, seeded):
        with pytest.raises(DatabaseError):
            async with seeded.atomic() as tx:
                await tx.append_movement(_issue("o1", 3, [("ZZZ", 1, 1)]))
        assert len(await seeded.list_movements("biz-1", "item-1")) == 2

    async def test_has_movements(self, seeded):
        async with seeded.atomic() as tx:
            assert await tx.has_movements("biz-1", "item-1")
            assert not await tx.has_movements("biz-1", "item-2")


class TestAppendOnly:
    @pytest.mark.parametrize(
        "statement",
        [
            "UPDATE movements SET quantity = 1",
            "DELETE FROM movements",
            "UPDATE movement_draws SET quantity = 1",
            "DELETE FROM movement_draws",
            "DELETE FROM lots",
        ],
    )
    async def test_ledger_rows_cannot_be_changed(self, seeded, db_pool, statement):
        async with seeded.atomic() as tx:
            await tx.append_movement(_issue("o1", 3, [("A", 10, 10)]))

        async with aiosqlite.connect(db_pool) as conn:
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute(statement)

        assert len(await seeded.list_movements("biz-1", "item-1")) == 3


class TestSearch:
    @pytest.fixture
    async def history(self, seeded):
        async with seeded.atomic() as tx:
            await tx.append_movement(
                _issue("o1", 3, [("A", 30, 10)], recipient="Kitchen", purpose="Lunch")
            )
            await tx.append_movement(
                _issue("o2", 4, [("A", 20, 10)], recipient="Bar", notes="Party stock")
            )
        return seeded

    async def test_newest_first(self, history):
        movements = await history.search_movements("biz-1", MovementQuery())
        assert [m.movement_id for m in movements] == ["o2", "o1", "in-B", "in-A"]

    async def test_paging(self, history):
        movements = await history.search_movements("biz-1", MovementQuery(limit=2, offset=1))
        assert [m.movement_id for m in movements] == ["o1", "in-B"]

    @pytest.mark.parametrize(
        "search, expected",
        [("kitchen", ["o1"]), ("PARTY", ["o2"]), ("acme", ["in-B", "in-A"]), ("bob", ["o2", "o1"])],
    )
    async def test_search(self, history, search, expected):
        movements = await history.search_movements("biz-1", MovementQuery(search=search))
        assert [m.movement_id for m in movements] == expected

    async def test_since(self, history):
        query = MovementQuery(since=T0 + timedelta(days=2, hours=12))
        movements = await history.search_movements("biz-1", query)
        assert [m.movement_id for m in movements] == ["o2", "o1"]

    async def test_item_filter(self, history):
        query = MovementQuery(item_id="item-2")
        assert await history.search_movements("biz-1", query) == []

    @pytest.mark.parametrize(
        "direction, expected",
        [(MovementDirection.OUT, ["o2", "o1"]), (MovementDirection.IN, ["in-B", "in-A"])],
    )
    async def test_direction_filter(self, history, direction, expected):
        query = MovementQuery(direction=direction)
        movements = await history.search_movements("biz-1", query)
        assert [m.movement_id for m in movements] == expected

    async def test_totals_follow_direction_filter(self, history):
        query = MovementQuery(direction=MovementDirection.OUT)
        totals = await history.summarize_movements("biz-1", query)

        assert totals.count == 2
        assert totals.inbound.count == 0
        assert totals.outbound.quantity == 50

    async def test_totals_ignore_paging(self, history):
        totals = await history.summarize_movements("biz-1", MovementQuery(limit=1))

        assert totals.count == 4
        assert totals.inbound.quantity == 150
        assert totals.inbound.value == 1600
        assert totals.outbound.count == 2
        assert totals.outbound.quantity == 50
        assert totals.outbound.value == 500
        assert totals.totals[MovementDirection.OUT] is totals.outbound

    async def test_last_movement_times(self, history):
        times = await history.last_movement_times("biz-1")
        assert times == {"item-1": T0 + timedelta(days=4)}
