"""Stock level classification against an item's minimum level."""

from enum import Enum


class StockStatus(str, Enum):
    """Stock level status, most urgent first."""

    CRITICAL = "critical"
    LOW = "low"
    GOOD = "good"

    @property
    def urgency(self) -> int:
        return _URGENCY[self]


_URGENCY = {StockStatus.CRITICAL: 0, StockStatus.LOW: 1, StockStatus.GOOD: 2}


def classify_stock_level(
    current_stock: float,
    min_stock_level: float | None,
    critical_ratio: float = 0.5,
) -> StockStatus:
    """
    Classify current stock.

    Critical at or below min_stock_level * critical_ratio, low at or below
    min_stock_level. Without a minimum, only an empty item is critical.
    """
    if current_stock <= (min_stock_level or 0) * critical_ratio:
        return StockStatus.CRITICAL
    if min_stock_level and current_stock <= min_stock_level:
        return StockStatus.LOW
    return StockStatus.GOOD
