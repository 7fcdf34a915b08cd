"""Abstract interface for item reference data."""

from abc import ABC, abstractmethod

from lotledger.core.entities.item import Item


class IItemStore(ABC):
    """Interface for item persistence, always scoped by business."""

    @abstractmethod
    async def create_item(self, item: Item) -> Item:
        """Create a new item."""
        pass

    @abstractmethod
    async def get_item(self, business_id: str, item_id: str) -> Item | None:
        """Get item by ID within a business."""
        pass

    @abstractmethod
    async def list_items(
        self,
        business_id: str,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Item]:
        """List a business's items ordered by name."""
        pass
