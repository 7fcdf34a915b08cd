"""Item reference data endpoints."""

from fastapi import APIRouter, Depends, Query, status

from lotledger.api.dependencies import (
    get_create_item_use_case,
    get_get_item_use_case,
    get_list_items_use_case,
)
from lotledger.application.dto.requests import CreateItemRequest
from lotledger.application.dto.responses import ErrorResponse, ItemListResponse, ItemResponse
from lotledger.application.use_cases import CreateItemUseCase, GetItemUseCase, ListItemsUseCase

router = APIRouter(prefix="/api/items", tags=["items"])


@router.post(
    "/{business_id}",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_item(
    business_id: str,
    request: CreateItemRequest,
    use_case: CreateItemUseCase = Depends(get_create_item_use_case),
) -> ItemResponse:
    """Register a stock keeping unit."""
    item = await use_case.execute(business_id, request)
    return use_case.to_response(item)


@router.get("/{business_id}", response_model=ItemListResponse)
async def list_items(
    business_id: str,
    category: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: ListItemsUseCase = Depends(get_list_items_use_case),
) -> ItemListResponse:
    """List items, optionally filtered by category."""
    items = await use_case.execute(business_id, category=category, limit=limit, offset=offset)
    return use_case.to_response(items)


@router.get(
    "/{business_id}/{item_id}",
    response_model=ItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_item(
    business_id: str,
    item_id: str,
    use_case: GetItemUseCase = Depends(get_get_item_use_case),
) -> ItemResponse:
    """Get one item."""
    item = await use_case.execute(business_id, item_id)
    return use_case.to_response(item)
