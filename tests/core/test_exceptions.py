"""Unit tests for domain exceptions."""

from lotledger.core.exceptions import (
    CommitConflictError,
    DatabaseError,
    DataIntegrityError,
    InsufficientStockError,
    ItemNotFoundError,
    LedgerError,
    LotShortfall,
    NotFoundError,
    ShortfallError,
    StockError,
    StorageError,
    TransactionConflictError,
    ValidationError,
)


class TestLedgerError:
    """Tests for base LedgerError exception."""

    def test_basic_initialization(self):
        error = LedgerError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "LedgerError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = LedgerError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = LedgerError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestValidationError:
    def test_field_and_value_in_details(self):
        error = ValidationError("quantity", "must be positive", -1)
        assert error.code == "VALIDATION_ERROR"
        assert error.details == {"field": "quantity", "message": "must be positive", "value": "-1"}
        assert "quantity" in str(error)

    def test_long_values_are_truncated(self):
        error = ValidationError("notes", "too long", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_none_value(self):
        assert ValidationError("actor", "required").details["value"] is None


class TestStockErrors:
    def test_shortfall_error(self):
        error = ShortfallError("item-1", requested=200, available=150)
        assert isinstance(error, StockError)
        assert error.shortfall == 50
        assert error.details == {
            "item_id": "item-1",
            "requested": 200,
            "available": 150,
            "shortfall": 50,
        }

    def test_insufficient_stock_names_every_lot(self):
        error = InsufficientStockError(
            "item-1",
            [LotShortfall("A", 10, 4), LotShortfall("B", 30, 0)],
        )

        assert error.code == "INSUFFICIENT_STOCK"
        assert [lot["lot_id"] for lot in error.details["lots"]] == ["A", "B"]
        assert error.details["shortfall"] == 36
        assert "A (requested 10, available 4)" in error.message

    def test_lot_shortfall(self):
        shortfall = LotShortfall("B", requested=30, available=0)
        assert shortfall.shortfall == 30
        assert shortfall.to_dict()["shortfall"] == 30

    def test_commit_conflict(self):
        error = CommitConflictError("item-1", attempts=3)
        assert isinstance(error, StockError)
        assert error.details["attempts"] == 3


class TestStorageErrors:
    def test_item_not_found(self):
        error = ItemNotFoundError("item-1", "biz-1")
        assert isinstance(error, NotFoundError)
        assert isinstance(error, StorageError)
        assert error.code == "ITEM_NOT_FOUND"
        assert error.details == {"item_id": "item-1", "business_id": "biz-1"}

    def test_transaction_conflict(self):
        error = TransactionConflictError("ledger_commit", "database is locked")
        assert error.code == "TRANSACTION_CONFLICT"
        assert "database is locked" in str(error)

    def test_database_error(self):
        error = DatabaseError("insert_lot", "UNIQUE constraint failed")
        assert error.details["operation"] == "insert_lot"

    def test_data_integrity_error(self):
        error = DataIntegrityError("item-1", ["lot A overdrawn", "lot B unknown"])
        assert error.issues == ["lot A overdrawn", "lot B unknown"]
        assert "lot A overdrawn; lot B unknown" in error.message
        assert not isinstance(error, StorageError)
