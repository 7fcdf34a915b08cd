"""
Lot ledger endpoints.

Outbound stock is a two-step flow: request a plan (FIFO or manual), then
submit that plan to /out. A 409 INSUFFICIENT_STOCK on commit means the lots
changed in between; request a fresh plan.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from lotledger.api.dependencies import (
    get_available_lots_use_case,
    get_commit_in_use_case,
    get_commit_out_use_case,
    get_import_legacy_use_case,
    get_movement_history_use_case,
    get_plan_fifo_use_case,
    get_plan_manual_use_case,
    get_reconcile_lots_use_case,
    get_stock_overview_use_case,
)
from lotledger.application.dto.requests import (
    CommitOutRequest,
    ImportLegacyRequest,
    MovementHistoryRequest,
    PlanFifoRequest,
    PlanManualRequest,
    ReceiveLotRequest,
    StockOverviewRequest,
)
from lotledger.application.dto.responses import (
    AvailableLotsResponse,
    CommitInResponse,
    CommitOutResponse,
    DrawPlanResponse,
    ErrorResponse,
    ImportLegacyResponse,
    MovementHistoryResponse,
    ReconcileResponse,
    StockOverviewResponse,
)
from lotledger.application.use_cases import (
    CommitInUseCase,
    CommitOutUseCase,
    GetAvailableLotsUseCase,
    ImportLegacyMovementsUseCase,
    MovementHistoryUseCase,
    PlanFifoUseCase,
    PlanManualUseCase,
    ReconcileLotsUseCase,
    StockOverviewUseCase,
)
from lotledger.core.entities import MovementDirection

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get(
    "/{business_id}/items/{item_id}/lots",
    response_model=AvailableLotsResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_available_lots(
    business_id: str,
    item_id: str,
    use_case: GetAvailableLotsUseCase = Depends(get_available_lots_use_case),
) -> AvailableLotsResponse:
    """Open lots of an item, oldest first, and total available stock."""
    result = await use_case.execute(business_id, item_id)
    return use_case.to_response(result)


@router.post(
    "/{business_id}/items/{item_id}/plan/fifo",
    response_model=DrawPlanResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def plan_fifo(
    business_id: str,
    item_id: str,
    request: PlanFifoRequest,
    use_case: PlanFifoUseCase = Depends(get_plan_fifo_use_case),
) -> DrawPlanResponse:
    """Plan an outbound draw oldest lot first. 409 SHORTFALL when stock is short."""
    plan = await use_case.execute(business_id, item_id, request)
    return use_case.to_response(plan)


@router.post(
    "/{business_id}/items/{item_id}/plan/manual",
    response_model=DrawPlanResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def plan_manual(
    business_id: str,
    item_id: str,
    request: PlanManualRequest,
    use_case: PlanManualUseCase = Depends(get_plan_manual_use_case),
) -> DrawPlanResponse:
    """Validate caller-chosen lot quantities into a plan."""
    plan = await use_case.execute(business_id, item_id, request)
    return use_case.to_response(plan)


@router.post(
    "/{business_id}/out",
    response_model=CommitOutResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def commit_out(
    business_id: str,
    request: CommitOutRequest,
    use_case: CommitOutUseCase = Depends(get_commit_out_use_case),
) -> CommitOutResponse:
    """Commit a draw plan as one OUT movement."""
    result = await use_case.execute(business_id, request)
    return use_case.to_response(result)


@router.post(
    "/{business_id}/in",
    response_model=CommitInResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def commit_in(
    business_id: str,
    request: ReceiveLotRequest,
    use_case: CommitInUseCase = Depends(get_commit_in_use_case),
) -> CommitInResponse:
    """Receive stock as a new lot."""
    result = await use_case.execute(business_id, request)
    return use_case.to_response(result)


@router.get("/{business_id}/history", response_model=MovementHistoryResponse)
async def movement_history(
    business_id: str,
    item_id: str | None = None,
    direction: MovementDirection | None = None,
    days: int | None = Query(default=None, ge=1),
    search: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    use_case: MovementHistoryUseCase = Depends(get_movement_history_use_case),
) -> MovementHistoryResponse:
    """Movements newest first, with IN/OUT totals over the whole filter."""
    request = MovementHistoryRequest(
        item_id=item_id,
        direction=direction,
        days=days,
        search=search,
        limit=limit,
        offset=offset,
    )
    result = await use_case.execute(business_id, request)
    return use_case.to_response(result)


@router.get("/{business_id}/overview", response_model=StockOverviewResponse)
async def stock_overview(
    business_id: str,
    category: str | None = None,
    sort_by: Literal["name", "stock", "status"] = "name",
    use_case: StockOverviewUseCase = Depends(get_stock_overview_use_case),
) -> StockOverviewResponse:
    """Current stock, value and level status of every item."""
    result = await use_case.execute(
        business_id, StockOverviewRequest(category=category, sort_by=sort_by)
    )
    return use_case.to_response(result)


@router.get(
    "/{business_id}/items/{item_id}/reconcile",
    response_model=ReconcileResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reconcile_lots(
    business_id: str,
    item_id: str,
    use_case: ReconcileLotsUseCase = Depends(get_reconcile_lots_use_case),
) -> ReconcileResponse:
    """Compare stored lots with a replay of the item's history."""
    result = await use_case.execute(business_id, item_id)
    return use_case.to_response(result)


@router.post(
    "/{business_id}/items/{item_id}/import",
    response_model=ImportLegacyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def import_legacy_movements(
    business_id: str,
    item_id: str,
    request: ImportLegacyRequest,
    use_case: ImportLegacyMovementsUseCase = Depends(get_import_legacy_use_case),
) -> ImportLegacyResponse:
    """Import the legacy movement records of an item with no ledger history."""
    result = await use_case.execute(business_id, item_id, request)
    return use_case.to_response(result)
