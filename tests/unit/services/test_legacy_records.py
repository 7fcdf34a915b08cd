"""Tests for legacy record normalization and replay."""

from datetime import UTC, datetime

import pytest

from lotledger.core.entities import InMovement, OutMovement
from lotledger.core.exceptions import DataIntegrityError, ValidationError
from lotledger.core.services.fifo_aggregator import FifoAggregator, normalize_legacy_record


def _normalize(record, **kwargs):
    return normalize_legacy_record(
        record,
        business_id="biz-1",
        item_id="item-1",
        default_actor="importer",
        **kwargs,
    )


class TestNormalizeLegacyRecord:
    def test_record_without_type_is_a_receipt(self):
        movement = _normalize(
            {
                "id": "doc-1",
                "totalQuantity": "40",
                "unitPrice": 2.5,
                "createdAt": "2024-01-05T10:00:00Z",
            }
        )

        assert isinstance(movement, InMovement)
        assert movement.lot_id == "doc-1"
        assert movement.quantity == 40.0
        assert movement.unit_cost == 2.5
        assert movement.counterparty == "Direct Entry"
        assert movement.actor == "importer"
        assert movement.created_at == datetime(2024, 1, 5, 10, 0, tzinfo=UTC)

    def test_stock_doc_ref_names_the_lot(self):
        movement = _normalize(
            {
                "id": "mv-9",
                "movementType": "in",
                "stockDocRef": "lot-7",
                "quantity": 3,
                "supplier": "ACME",
                "movedByName": "Alice",
                "createdAt": 1704449000,
            }
        )

        assert movement.lot_id == "lot-7"
        assert movement.movement_id == "mv-9"
        assert movement.counterparty == "ACME"
        assert movement.actor == "Alice"

    def test_missing_unit_price_defaults_to_zero(self):
        movement = _normalize({"id": "d", "quantity": 1, "createdAt": 1704449000})
        assert movement.unit_cost == 0.0

    def test_total_quantity_wins_over_quantity(self):
        movement = _normalize(
            {"id": "d", "totalQuantity": 12, "quantity": 2, "createdAt": 1704449000}
        )
        assert movement.quantity == 12

    def test_firestore_style_timestamp(self):
        movement = _normalize(
            {"id": "d", "quantity": 1, "createdAt": {"seconds": 1704067200, "nanoseconds": 0}}
        )
        assert movement.created_at == datetime(2024, 1, 1, tzinfo=UTC)

    def test_out_with_batch_id_becomes_explicit_draw(self):
        movement = _normalize(
            {
                "movementType": "OUT",
                "quantity": 5,
                "batchId": "doc-1",
                "recipient": "Kitchen",
                "reason": "Lunch",
                "createdAt": "2024-01-06T10:00:00+00:00",
            }
        )

        assert isinstance(movement, OutMovement)
        assert [(d.lot_id, d.quantity) for d in movement.draws] == [("doc-1", 5)]
        assert movement.counterparty == "Kitchen"
        assert movement.purpose == "Lunch"

    def test_out_without_batch_is_left_for_fifo(self):
        movement = _normalize(
            {"movementType": "OUT", "quantity": 5, "createdAt": "2024-01-06T10:00:00"}
        )
        assert isinstance(movement, OutMovement)
        assert not movement.has_explicit_draws

    @pytest.mark.parametrize(
        "record, field",
        [
            ({"movementType": "MOVE", "quantity": 1, "createdAt": 1}, "movementType"),
            ({"id": "d", "createdAt": 1}, "totalQuantity"),
            ({"id": "d", "quantity": "lots", "createdAt": 1}, "totalQuantity"),
            ({"id": "d", "quantity": -3, "createdAt": 1}, "totalQuantity"),
            ({"id": "d", "quantity": 1, "unitPrice": -1, "createdAt": 1}, "unitPrice"),
            ({"id": "d", "quantity": 1, "createdAt": "yesterday"}, "createdAt"),
            ({"id": "d", "quantity": 1}, "createdAt"),
            ({"quantity": 1, "createdAt": 1}, "id"),
            ({"id": "d", "itemId": "other", "quantity": 1, "createdAt": 1}, "itemId"),
        ],
    )
    def test_invalid_records(self, record, field):
        with pytest.raises(ValidationError) as exc_info:
            _normalize(record)
        assert exc_info.value.details["field"] == field


class TestReplayRecords:
    def test_records_replay_into_lots(self):
        records = [
            {"id": "r2", "movementType": "IN", "quantity": 50, "unitPrice": 12,
             "createdAt": "2024-01-02T00:00:00Z"},
            {"id": "r1", "quantity": 100, "unitPrice": 10, "createdAt": "2024-01-01T00:00:00Z"},
            {"id": "r3", "movementType": "OUT", "quantity": 120,
             "createdAt": "2024-01-03T00:00:00Z"},
        ]

        entries, replay = FifoAggregator().replay_records("biz-1", "item-1", records, "importer")

        assert len(entries) == 3
        assert [(lot.lot_id, lot.remaining_quantity) for lot in replay.lots] == [
            ("r1", 0),
            ("r2", 30),
        ]
        assert [d.lot_id for d in replay.realized_draws["r3"]] == ["r1", "r2"]

    def test_inconsistent_records_raise(self):
        records = [
            {"id": "r1", "quantity": 10, "createdAt": "2024-01-01T00:00:00Z"},
            {"id": "r2", "movementType": "OUT", "quantity": 11,
             "createdAt": "2024-01-02T00:00:00Z"},
        ]

        with pytest.raises(DataIntegrityError):
            FifoAggregator().replay_records("biz-1", "item-1", records, "importer")
