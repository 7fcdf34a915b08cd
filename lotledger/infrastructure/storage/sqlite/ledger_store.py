"""
SQLite implementation of the lot store and movement ledger.

Reads use pooled connections. Writes happen only inside atomic(), which
holds the database write lock (BEGIN IMMEDIATE) from the first read to the
commit, so lot quantities read inside it are the quantities written over.
"""

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import aiosqlite

from lotledger.config import get_logger
from lotledger.core.entities.lot import Lot
from lotledger.core.entities.movement import (
    QUANTITY_EPSILON,
    InMovement,
    LotDraw,
    MovementDirection,
    MovementEntry,
    OutMovement,
)
from lotledger.core.exceptions import (
    DatabaseError,
    TransactionConflictError,
    ValidationError,
)
from lotledger.core.interfaces.ledger_store import (
    DirectionTotals,
    ILedgerTransaction,
    ILotLedgerStore,
    MovementQuery,
    MovementTotals,
)
from lotledger.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_immediate_transaction,
)
from lotledger.infrastructure.storage.sqlite.timestamps import from_db_time, to_db_time

logger = get_logger(__name__)


class _SQLiteLedgerTransaction(ILedgerTransaction):
    """Ledger operations bound to one connection holding the write lock."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get_lot(self, business_id: str, lot_id: str) -> Lot | None:
        return await _fetch_lot(self._conn, business_id, lot_id)

    async def update_lot_remaining(
        self, business_id: str, lot_id: str, drawn: float
    ) -> Lot:
        now = to_db_time(datetime.now(UTC))
        # Guarded decrement; float dust at the bottom snaps to zero
        cursor = await self._conn.execute(
            """
            UPDATE lots SET
                remaining_quantity = CASE
                    WHEN remaining_quantity - ? <= ? THEN 0
                    ELSE remaining_quantity - ?
                END,
                updated_at = ?
            WHERE business_id = ? AND lot_id = ? AND remaining_quantity >= ? - ?
            """,
            (
                drawn,
                QUANTITY_EPSILON,
                drawn,
                now,
                business_id,
                lot_id,
                drawn,
                QUANTITY_EPSILON,
            ),
        )
        if cursor.rowcount == 0:
            raise TransactionConflictError(
                "update_lot_remaining",
                f"lot {lot_id} no longer holds {drawn:g}",
            )

        lot = await _fetch_lot(self._conn, business_id, lot_id)
        if lot is None:
            raise DatabaseError("update_lot_remaining", f"lot {lot_id} vanished after update")
        return lot

    async def insert_lot(self, lot: Lot) -> Lot:
        try:
            await self._conn.execute(
                """
                INSERT INTO lots (
                    lot_id, business_id, item_id, original_quantity,
                    remaining_quantity, unit_cost, received_at, source, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    lot.lot_id,
                    lot.business_id,
                    lot.item_id,
                    lot.original_quantity,
                    lot.remaining_quantity,
                    lot.unit_cost,
                    to_db_time(lot.received_at),
                    lot.source,
                    to_db_time(lot.updated_at),
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("insert_lot", str(e)) from e
        return lot

    async def append_movement(self, movement: MovementEntry) -> MovementEntry:
        if isinstance(movement, OutMovement) and not movement.has_explicit_draws:
            raise ValidationError("draws", "an OUT movement must record the lots it drew from")

        lot_id = movement.lot_id if isinstance(movement, InMovement) else None
        unit_cost = movement.unit_cost if isinstance(movement, InMovement) else None
        try:
            await self._conn.execute(
                """
                INSERT INTO movements (
                    movement_id, business_id, item_id, direction, quantity,
                    lot_id, unit_cost, total_value, counterparty, purpose,
                    notes, actor, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.movement_id,
                    movement.business_id,
                    movement.item_id,
                    movement.direction.value,
                    movement.quantity,
                    lot_id,
                    unit_cost,
                    movement.total,
                    movement.counterparty,
                    movement.purpose,
                    movement.notes,
                    movement.actor,
                    to_db_time(movement.created_at),
                ),
            )
            if isinstance(movement, OutMovement):
                await self._conn.executemany(
                    """
                    INSERT INTO movement_draws (
                        movement_id, draw_index, lot_id, quantity, unit_cost
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (movement.movement_id, index, d.lot_id, d.quantity, d.unit_cost)
                        for index, d in enumerate(movement.draws)
                    ],
                )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("append_movement", str(e)) from e

        logger.debug(
            "movement_appended",
            movement_id=movement.movement_id,
            direction=movement.direction.value,
            item_id=movement.item_id,
            quantity=movement.quantity,
        )
        return movement

    async def has_movements(self, business_id: str, item_id: str) -> bool:
        cursor = await self._conn.execute(
            "SELECT 1 FROM movements WHERE business_id = ? AND item_id = ? LIMIT 1",
            (business_id, item_id),
        )
        return await cursor.fetchone() is not None


class SQLiteLotLedgerStore(ILotLedgerStore):
    """SQLite implementation of lots and the append-only movement ledger."""

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[ILedgerTransaction]:
        """Open a write transaction holding the database write lock."""
        async with get_immediate_transaction("ledger_commit") as conn:
            yield _SQLiteLedgerTransaction(conn)

    async def get_lot(self, business_id: str, lot_id: str) -> Lot | None:
        async with get_connection() as conn:
            return await _fetch_lot(conn, business_id, lot_id)

    async def get_lots(
        self,
        business_id: str,
        item_id: str | None = None,
        include_exhausted: bool = False,
    ) -> list[Lot]:
        conditions = ["business_id = ?"]
        params: list = [business_id]
        if item_id is not None:
            conditions.append("item_id = ?")
            params.append(item_id)
        if not include_exhausted:
            conditions.append("remaining_quantity > 0")

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM lots
                WHERE {" AND ".join(conditions)}
                ORDER BY received_at, rowid
                """,
                params,
            )
            rows = await cursor.fetchall()
            return [_row_to_lot(row) for row in rows]

    async def list_movements(
        self, business_id: str, item_id: str
    ) -> list[MovementEntry]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM movements
                WHERE business_id = ? AND item_id = ?
                ORDER BY created_at, rowid
                """,
                (business_id, item_id),
            )
            rows = await cursor.fetchall()
            return await _load_movements(conn, rows)

    async def search_movements(
        self, business_id: str, query: MovementQuery
    ) -> list[MovementEntry]:
        where, params = _movement_filters(business_id, query)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM movements
                WHERE {where}
                ORDER BY created_at DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (*params, query.limit, query.offset),
            )
            rows = await cursor.fetchall()
            return await _load_movements(conn, rows)

    async def summarize_movements(
        self, business_id: str, query: MovementQuery
    ) -> MovementTotals:
        where, params = _movement_filters(business_id, query)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT direction,
                       COUNT(*) AS count,
                       COALESCE(SUM(quantity), 0) AS quantity,
                       COALESCE(SUM(total_value), 0) AS value
                FROM movements
                WHERE {where}
                GROUP BY direction
                """,
                params,
            )
            rows = await cursor.fetchall()

        totals = MovementTotals()
        for row in rows:
            totals.totals[MovementDirection(row["direction"])] = DirectionTotals(
                count=row["count"],
                quantity=float(row["quantity"]),
                value=float(row["value"]),
            )
        return totals

    async def last_movement_times(self, business_id: str) -> dict[str, datetime]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT item_id, MAX(created_at) AS last_at
                FROM movements
                WHERE business_id = ?
                GROUP BY item_id
                """,
                (business_id,),
            )
            rows = await cursor.fetchall()
            return {row["item_id"]: from_db_time(row["last_at"]) for row in rows}


# Row helpers


async def _fetch_lot(
    conn: aiosqlite.Connection, business_id: str, lot_id: str
) -> Lot | None:
    cursor = await conn.execute(
        "SELECT * FROM lots WHERE business_id = ? AND lot_id = ?",
        (business_id, lot_id),
    )
    row = await cursor.fetchone()
    return _row_to_lot(row) if row is not None else None


def _row_to_lot(row: aiosqlite.Row) -> Lot:
    """Convert a database row to a Lot entity."""
    return Lot(
        lot_id=row["lot_id"],
        business_id=row["business_id"],
        item_id=row["item_id"],
        original_quantity=float(row["original_quantity"]),
        remaining_quantity=float(row["remaining_quantity"]),
        unit_cost=float(row["unit_cost"]),
        received_at=from_db_time(row["received_at"]),
        source=row["source"],
        updated_at=from_db_time(row["updated_at"]),
    )


def _movement_filters(business_id: str, query: MovementQuery) -> tuple[str, list]:
    conditions = ["business_id = ?"]
    params: list = [business_id]
    if query.item_id:
        conditions.append("item_id = ?")
        params.append(query.item_id)
    if query.direction is not None:
        conditions.append("direction = ?")
        params.append(query.direction.value)
    if query.since is not None:
        conditions.append("created_at >= ?")
        params.append(to_db_time(query.since))
    if query.search:
        pattern = f"%{query.search.strip().lower()}%"
        conditions.append(
            "(LOWER(COALESCE(counterparty, '')) LIKE ?"
            " OR LOWER(COALESCE(purpose, '')) LIKE ?"
            " OR LOWER(COALESCE(notes, '')) LIKE ?"
            " OR LOWER(actor) LIKE ?)"
        )
        params.extend([pattern] * 4)
    return " AND ".join(conditions), params


async def _load_movements(
    conn: aiosqlite.Connection, rows: Iterable[aiosqlite.Row]
) -> list[MovementEntry]:
    """Build movement entities, attaching draws to OUT rows."""
    rows = list(rows)
    out_ids = [row["movement_id"] for row in rows if row["direction"] == "OUT"]

    draws: dict[str, list[LotDraw]] = {movement_id: [] for movement_id in out_ids}
    if out_ids:
        placeholders = ", ".join("?" for _ in out_ids)
        cursor = await conn.execute(
            f"""
            SELECT * FROM movement_draws
            WHERE movement_id IN ({placeholders})
            ORDER BY movement_id, draw_index
            """,
            out_ids,
        )
        for draw_row in await cursor.fetchall():
            draws[draw_row["movement_id"]].append(
                LotDraw(
                    lot_id=draw_row["lot_id"],
                    quantity=float(draw_row["quantity"]),
                    unit_cost=float(draw_row["unit_cost"]),
                )
            )

    return [_row_to_movement(row, draws.get(row["movement_id"], [])) for row in rows]


def _row_to_movement(row: aiosqlite.Row, draws: list[LotDraw]) -> MovementEntry:
    """Convert a database row to an IN or OUT movement entity."""
    common = {
        "movement_id": row["movement_id"],
        "business_id": row["business_id"],
        "item_id": row["item_id"],
        "quantity": float(row["quantity"]),
        "counterparty": row["counterparty"],
        "purpose": row["purpose"],
        "notes": row["notes"],
        "actor": row["actor"],
        "created_at": from_db_time(row["created_at"]),
    }
    if row["direction"] == MovementDirection.IN.value:
        return InMovement(
            **common,
            lot_id=row["lot_id"],
            unit_cost=float(row["unit_cost"]),
        )
    return OutMovement(**common, draws=draws)
