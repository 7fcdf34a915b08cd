"""SQLite implementation of item storage."""

from datetime import UTC, datetime

import aiosqlite

from lotledger.config import get_logger
from lotledger.core.entities.item import Item
from lotledger.core.exceptions import DatabaseError
from lotledger.core.interfaces.item_store import IItemStore
from lotledger.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from lotledger.infrastructure.storage.sqlite.timestamps import from_db_time, to_db_time

logger = get_logger(__name__)


class SQLiteItemStore(IItemStore):
    """SQLite implementation of item reference data storage."""

    async def create_item(self, item: Item) -> Item:
        """Create a new item."""
        now = datetime.now(UTC)
        item.created_at = now
        item.updated_at = now
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO items (
                        id, business_id, name, category, unit_type,
                        units_per_pack, min_stock_level, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        item.id,
                        item.business_id,
                        item.name,
                        item.category,
                        item.unit_type,
                        item.units_per_pack,
                        item.min_stock_level,
                        to_db_time(item.created_at),
                        to_db_time(item.updated_at),
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("create_item", str(e)) from e

        logger.info(
            "item_created",
            business_id=item.business_id,
            item_id=item.id,
            name=item.name,
        )
        return item

    async def get_item(self, business_id: str, item_id: str) -> Item | None:
        """Get item by ID within a business."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM items WHERE business_id = ? AND id = ?",
                (business_id, item_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_item(row)

    async def list_items(
        self,
        business_id: str,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Item]:
        """List a business's items ordered by name."""
        conditions = ["business_id = ?"]
        params: list = [business_id]
        if category:
            conditions.append("category = ?")
            params.append(category)

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM items
                WHERE {" AND ".join(conditions)}
                ORDER BY name COLLATE NOCASE, id
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_item(row) for row in rows]

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> Item:
        """Convert a database row to an Item entity."""
        return Item(
            id=row["id"],
            business_id=row["business_id"],
            name=row["name"],
            category=row["category"],
            unit_type=row["unit_type"],
            units_per_pack=float(row["units_per_pack"]),
            min_stock_level=(
                float(row["min_stock_level"]) if row["min_stock_level"] is not None else None
            ),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
