"""
FIFO aggregator.

Rebuilds the lots of one item by replaying its movement history:
IN movements seed lots oldest-first, OUT movements apply their recorded
draws, and OUT movements without draws (legacy data) are consumed FIFO.
Pure service -- no infrastructure imports, never mutates its input.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

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
from lotledger.core.exceptions import DataIntegrityError, ValidationError

logger = get_logger(__name__)

DEFAULT_SOURCE = "Direct Entry"


@dataclass
class AvailableLots:
    """Open lots of an item in FIFO order."""

    business_id: str
    item_id: str
    lots: list[Lot] = field(default_factory=list)

    @property
    def total_available(self) -> float:
        return sum(lot.remaining_quantity for lot in self.lots)

    @property
    def total_value(self) -> float:
        return sum(lot.remaining_value for lot in self.lots)

    def get(self, lot_id: str) -> Lot | None:
        for lot in self.lots:
            if lot.lot_id == lot_id:
                return lot
        return None


@dataclass
class LotReplay:
    """Outcome of replaying an item's movement history."""

    item_id: str
    lots: list[Lot]  # every lot, exhausted included, oldest first
    realized_draws: dict[str, list[LotDraw]] = field(default_factory=dict)
    issues: list[str] = field(default_factory=list)

    @property
    def open_lots(self) -> list[Lot]:
        return [lot for lot in self.lots if not lot.is_exhausted]

    @property
    def total_available(self) -> float:
        return sum(lot.remaining_quantity for lot in self.lots)

    @property
    def is_consistent(self) -> bool:
        return not self.issues

    def available(self, business_id: str) -> AvailableLots:
        return AvailableLots(
            business_id=business_id,
            item_id=self.item_id,
            lots=self.open_lots,
        )


def _snap(quantity: float) -> float:
    """Round float dust around zero to exactly zero."""
    return 0.0 if abs(quantity) <= QUANTITY_EPSILON else quantity


class FifoAggregator:
    """Derives lot state from the movement ledger."""

    def __init__(self, default_source: str = DEFAULT_SOURCE) -> None:
        self._default_source = default_source

    def replay(
        self,
        item_id: str,
        movements: Iterable[MovementEntry],
        strict: bool = True,
    ) -> LotReplay:
        """
        Replay movements of one item.

        Args:
            item_id: Item whose history is replayed.
            movements: Its movements, in any order.
            strict: Raise DataIntegrityError on any inconsistency instead of
                returning it in LotReplay.issues.

        Returns:
            LotReplay with every lot, clamped at zero where history overdraws.
        """
        entries = list(movements)
        for m in entries:
            if m.item_id != item_id:
                raise ValidationError(
                    "movements",
                    f"movement {m.movement_id} belongs to item {m.item_id}, not {item_id}",
                )

        # Stable sorts keep storage order for equal timestamps
        inbound = sorted(
            (m for m in entries if isinstance(m, InMovement)),
            key=lambda m: m.created_at,
        )
        outbound = sorted(
            (m for m in entries if isinstance(m, OutMovement)),
            key=lambda m: m.created_at,
        )

        issues: list[str] = []
        lots: dict[str, Lot] = {}
        for m in inbound:
            if m.lot_id in lots:
                issues.append(f"lot {m.lot_id} is created by more than one IN movement")
                continue
            lots[m.lot_id] = Lot(
                lot_id=m.lot_id,
                business_id=m.business_id,
                item_id=m.item_id,
                original_quantity=m.quantity,
                remaining_quantity=m.quantity,
                unit_cost=m.unit_cost,
                received_at=m.created_at,
                source=m.counterparty or self._default_source,
                updated_at=m.created_at,
            )

        fifo_order = list(lots.values())
        realized: dict[str, list[LotDraw]] = {}
        for m in outbound:
            if m.has_explicit_draws:
                realized[m.movement_id] = self._apply_draws(m, lots, issues)
            else:
                realized[m.movement_id] = self._consume_fifo(m, fifo_order, issues)

        result = LotReplay(
            item_id=item_id,
            lots=fifo_order,
            realized_draws=realized,
            issues=issues,
        )

        if issues and strict:
            logger.error(
                "ledger_integrity_violation",
                item_id=item_id,
                issues=issues,
            )
            raise DataIntegrityError(item_id, issues)

        return result

    def available_lots(
        self,
        business_id: str,
        item_id: str,
        movements: Iterable[MovementEntry],
    ) -> AvailableLots:
        """Open lots and total available stock, strictly replayed."""
        return self.replay(item_id, movements).available(business_id)

    def replay_records(
        self,
        business_id: str,
        item_id: str,
        records: Iterable[Mapping[str, Any]],
        default_actor: str,
        strict: bool = True,
    ) -> tuple[list[MovementEntry], LotReplay]:
        """Normalize loosely-typed legacy records and replay them."""
        entries = [
            normalize_legacy_record(
                record,
                business_id=business_id,
                item_id=item_id,
                default_actor=default_actor,
                default_source=self._default_source,
            )
            for record in records
        ]
        return entries, self.replay(item_id, entries, strict=strict)

    @staticmethod
    def _apply_draws(
        movement: OutMovement,
        lots: dict[str, Lot],
        issues: list[str],
    ) -> list[LotDraw]:
        realized: list[LotDraw] = []
        for draw in movement.draws:
            lot = lots.get(draw.lot_id)
            if lot is None:
                issues.append(
                    f"movement {movement.movement_id} draws from unknown lot {draw.lot_id}"
                )
                realized.append(draw)
                continue
            # Cost follows the lot, whatever the record claimed
            realized.append(
                LotDraw(lot_id=lot.lot_id, quantity=draw.quantity, unit_cost=lot.unit_cost)
            )

            remaining = _snap(lot.remaining_quantity - draw.quantity)
            if remaining < 0:
                issues.append(
                    f"movement {movement.movement_id} overdraws lot {lot.lot_id} "
                    f"by {-remaining:g}"
                )
                remaining = 0.0
            lot.remaining_quantity = remaining
            lot.updated_at = movement.created_at
        return realized

    @staticmethod
    def _consume_fifo(
        movement: OutMovement,
        fifo_order: list[Lot],
        issues: list[str],
    ) -> list[LotDraw]:
        draws: list[LotDraw] = []
        needed = movement.quantity
        for lot in fifo_order:
            if needed <= QUANTITY_EPSILON:
                break
            if lot.is_exhausted:
                continue
            take = min(lot.remaining_quantity, needed)
            lot.remaining_quantity = _snap(lot.remaining_quantity - take)
            lot.updated_at = movement.created_at
            needed = _snap(needed - take)
            draws.append(LotDraw(lot_id=lot.lot_id, quantity=take, unit_cost=lot.unit_cost))

        if needed > QUANTITY_EPSILON:
            issues.append(
                f"movement {movement.movement_id} issues {needed:g} more than was in stock"
            )
        return draws


# Legacy record normalization


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among keys."""
    for key in keys:
        value = record.get(key)
        if value:
            return value
    return None


def _parse_float(field_name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(field_name, "must be a number", value) from None


def _parse_timestamp(value: Any) -> datetime:
    """Accept datetimes, ISO strings, epoch seconds or {'seconds': ...} maps."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        raise ValidationError("createdAt", "unsupported timestamp", value)
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, Mapping) and "seconds" in value:
        seconds = float(value["seconds"]) + float(value.get("nanoseconds", 0)) / 1e9
        return datetime.fromtimestamp(seconds, tz=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError("createdAt", "not an ISO timestamp", value) from None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise ValidationError("createdAt", "missing or unsupported timestamp", value)


def normalize_legacy_record(
    record: Mapping[str, Any],
    business_id: str,
    item_id: str,
    default_actor: str,
    default_source: str = DEFAULT_SOURCE,
) -> MovementEntry:
    """
    Convert one loosely-typed stock record into a typed movement.

    Records without movementType are receipts. Quantity comes from
    totalQuantity, falling back to quantity; unit price defaults to 0.
    OUT records naming a batchId become explicit single-lot draws, other
    OUT records are left for FIFO consumption.
    """
    record_item = record.get("itemId")
    if record_item is not None and record_item != item_id:
        raise ValidationError("itemId", f"record belongs to item {record_item}", record_item)

    raw_direction = str(record.get("movementType") or MovementDirection.IN.value).upper()
    try:
        direction = MovementDirection(raw_direction)
    except ValueError:
        raise ValidationError("movementType", "must be IN or OUT", raw_direction) from None

    raw_quantity = _first_present(record, "totalQuantity", "quantity")
    if raw_quantity is None:
        raise ValidationError("totalQuantity", "record has no quantity", None)
    quantity = _parse_float("totalQuantity", raw_quantity)
    if quantity <= 0:
        raise ValidationError("totalQuantity", "must be positive", quantity)

    unit_cost = _parse_float("unitPrice", record.get("unitPrice") or 0)
    if unit_cost < 0:
        raise ValidationError("unitPrice", "must not be negative", unit_cost)

    created_at = _parse_timestamp(record.get("createdAt"))
    actor = _first_present(record, "movedByName", "movedBy", "createdBy") or default_actor
    notes = record.get("notes") or None

    common: dict[str, Any] = {
        "business_id": business_id,
        "item_id": item_id,
        "quantity": quantity,
        "actor": str(actor),
        "notes": notes,
        "created_at": created_at,
    }
    if record.get("id"):
        common["movement_id"] = str(record["id"])

    if direction is MovementDirection.IN:
        lot_id = _first_present(record, "stockDocRef", "id")
        if lot_id is None:
            raise ValidationError("id", "receipt record has no identifier", None)
        return InMovement(
            **common,
            lot_id=str(lot_id),
            unit_cost=unit_cost,
            counterparty=record.get("supplier") or default_source,
        )

    draws: list[LotDraw] = []
    batch_id = _first_present(record, "stockBatchRef", "batchId")
    if batch_id is not None:
        draws.append(LotDraw(lot_id=str(batch_id), quantity=quantity, unit_cost=unit_cost))
    return OutMovement(
        **common,
        counterparty=record.get("recipient") or None,
        purpose=record.get("purpose") or record.get("reason") or None,
        draws=draws,
    )
