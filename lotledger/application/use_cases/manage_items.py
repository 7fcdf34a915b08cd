"""Item Use Cases: create, get and list reference items."""

from lotledger.application.dto.requests import CreateItemRequest
from lotledger.application.dto.responses import ItemListResponse, ItemResponse
from lotledger.application.use_cases.converters import item_to_response
from lotledger.config import get_logger
from lotledger.core.entities.item import Item
from lotledger.core.exceptions import ItemNotFoundError, ValidationError
from lotledger.core.interfaces.item_store import IItemStore

logger = get_logger(__name__)


class _ItemUseCase:
    def __init__(self, item_store: IItemStore | None = None):
        self._item_store = item_store

    async def _get_item_store(self) -> IItemStore:
        if self._item_store is None:
            from lotledger.infrastructure.storage.sqlite import get_item_store

            self._item_store = await get_item_store()
        return self._item_store


class CreateItemUseCase(_ItemUseCase):
    """Register a new stock keeping unit."""

    async def execute(self, business_id: str, request: CreateItemRequest) -> Item:
        if not request.name.strip():
            raise ValidationError("name", "must not be blank", request.name)

        item = Item(
            business_id=business_id,
            name=request.name,
            category=request.category,
            unit_type=request.unit_type,
            units_per_pack=request.units_per_pack,
            min_stock_level=request.min_stock_level,
        )
        store = await self._get_item_store()
        return await store.create_item(item)

    def to_response(self, item: Item) -> ItemResponse:
        return item_to_response(item)


class GetItemUseCase(_ItemUseCase):
    """Look up one item of a business."""

    async def execute(self, business_id: str, item_id: str) -> Item:
        store = await self._get_item_store()
        item = await store.get_item(business_id, item_id)
        if item is None:
            raise ItemNotFoundError(item_id, business_id)
        return item

    def to_response(self, item: Item) -> ItemResponse:
        return item_to_response(item)


class ListItemsUseCase(_ItemUseCase):
    """List a business's items, optionally by category."""

    async def execute(
        self,
        business_id: str,
        category: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Item]:
        store = await self._get_item_store()
        return await store.list_items(business_id, category=category, limit=limit, offset=offset)

    def to_response(self, items: list[Item]) -> ItemListResponse:
        return ItemListResponse(
            items=[item_to_response(item) for item in items],
            total=len(items),
        )
