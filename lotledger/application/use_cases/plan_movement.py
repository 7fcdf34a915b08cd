"""Plan Movement Use Cases: FIFO and manual draw plans over available lots."""

from lotledger.application.dto.requests import PlanFifoRequest, PlanManualRequest
from lotledger.application.dto.responses import DrawPlanResponse
from lotledger.application.services import get_batch_planner
from lotledger.application.use_cases.converters import plan_to_response
from lotledger.application.use_cases.get_available_lots import GetAvailableLotsUseCase
from lotledger.config import get_logger
from lotledger.core.entities.plan import DrawPlan
from lotledger.core.services.batch_planner import BatchSelectionPlanner

logger = get_logger(__name__)


class _PlanUseCase:
    def __init__(
        self,
        available_lots: GetAvailableLotsUseCase | None = None,
        planner: BatchSelectionPlanner | None = None,
    ):
        self._available_lots = available_lots or GetAvailableLotsUseCase()
        self._planner = planner

    def _get_planner(self) -> BatchSelectionPlanner:
        if self._planner is None:
            self._planner = get_batch_planner()
        return self._planner

    def to_response(self, plan: DrawPlan) -> DrawPlanResponse:
        return plan_to_response(plan)


class PlanFifoUseCase(_PlanUseCase):
    """Plan an outbound draw oldest lot first."""

    async def execute(
        self, business_id: str, item_id: str, request: PlanFifoRequest
    ) -> DrawPlan:
        available = await self._available_lots.execute(business_id, item_id)
        plan = self._get_planner().plan_fifo(
            business_id, item_id, available.lots, request.quantity
        )
        logger.info(
            "fifo_plan_created",
            business_id=business_id,
            item_id=item_id,
            quantity=plan.quantity,
            lots=[d.lot_id for d in plan.draws],
        )
        return plan


class PlanManualUseCase(_PlanUseCase):
    """Validate caller-chosen lot quantities into a plan."""

    async def execute(
        self, business_id: str, item_id: str, request: PlanManualRequest
    ) -> DrawPlan:
        available = await self._available_lots.execute(business_id, item_id)
        plan = self._get_planner().plan_manual(
            business_id,
            item_id,
            available.lots,
            request.lot_quantities,
            declared_quantity=request.quantity,
        )
        logger.info(
            "manual_plan_created",
            business_id=business_id,
            item_id=item_id,
            quantity=plan.quantity,
            lots=[d.lot_id for d in plan.draws],
        )
        return plan
