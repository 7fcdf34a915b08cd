"""Entity to response DTO conversions shared by the ledger use cases."""

from lotledger.application.dto.responses import (
    AvailableLotsResponse,
    DrawPlanResponse,
    ItemResponse,
    LotDrawResponse,
    LotResponse,
    MovementResponse,
    PlannedDrawResponse,
)
from lotledger.core.entities import DrawPlan, InMovement, Item, Lot, MovementEntry
from lotledger.core.services.fifo_aggregator import AvailableLots


def item_to_response(item: Item) -> ItemResponse:
    return ItemResponse(
        id=item.id,
        business_id=item.business_id,
        name=item.name,
        category=item.category,
        unit_type=item.unit_type,
        units_per_pack=item.units_per_pack,
        min_stock_level=item.min_stock_level,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def lot_to_response(lot: Lot) -> LotResponse:
    return LotResponse(
        lot_id=lot.lot_id,
        item_id=lot.item_id,
        original_quantity=lot.original_quantity,
        remaining_quantity=lot.remaining_quantity,
        unit_cost=lot.unit_cost,
        remaining_value=lot.remaining_value,
        received_at=lot.received_at,
        source=lot.source,
    )


def available_lots_to_response(available: AvailableLots) -> AvailableLotsResponse:
    return AvailableLotsResponse(
        business_id=available.business_id,
        item_id=available.item_id,
        lots=[lot_to_response(lot) for lot in available.lots],
        total_available=available.total_available,
        total_value=available.total_value,
    )


def plan_to_response(plan: DrawPlan) -> DrawPlanResponse:
    return DrawPlanResponse(
        business_id=plan.business_id,
        item_id=plan.item_id,
        mode=plan.mode.value,
        draws=[
            PlannedDrawResponse(
                lot_id=d.lot_id,
                quantity=d.quantity,
                unit_cost=d.unit_cost,
                value=d.value,
            )
            for d in plan.draws
        ],
        quantity=plan.quantity,
        total_value=plan.total_value,
        average_unit_cost=plan.average_unit_cost,
        planned_at=plan.planned_at,
    )


def movement_to_response(movement: MovementEntry) -> MovementResponse:
    """Flatten an IN or OUT movement into one response shape."""
    if isinstance(movement, InMovement):
        return MovementResponse(
            movement_id=movement.movement_id,
            direction=movement.direction.value,
            item_id=movement.item_id,
            quantity=movement.quantity,
            total=movement.total,
            lot_id=movement.lot_id,
            unit_cost=movement.unit_cost,
            counterparty=movement.counterparty,
            purpose=movement.purpose,
            notes=movement.notes,
            actor=movement.actor,
            created_at=movement.created_at,
        )
    return MovementResponse(
        movement_id=movement.movement_id,
        direction=movement.direction.value,
        item_id=movement.item_id,
        quantity=movement.quantity,
        total=movement.total,
        draws=[
            LotDrawResponse(
                lot_id=d.lot_id,
                quantity=d.quantity,
                unit_cost=d.unit_cost,
                value=d.value,
            )
            for d in movement.draws
        ],
        counterparty=movement.counterparty,
        purpose=movement.purpose,
        notes=movement.notes,
        actor=movement.actor,
        created_at=movement.created_at,
    )
