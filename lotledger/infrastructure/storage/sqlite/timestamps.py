"""Timestamp encoding for SQLite TEXT columns."""

from datetime import UTC, datetime


def to_db_time(value: datetime) -> str:
    """
    Encode as UTC ISO-8601 with fixed microsecond precision.

    The fixed width keeps lexical order equal to chronological order, which
    FIFO ordering and date filters rely on.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    """Decode a stored timestamp; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
