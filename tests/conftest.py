"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lotledger.api.main import app
from lotledger.application.services import reset_services
from lotledger.core.entities import InMovement, Item, Lot, LotDraw, OutMovement

BUSINESS_ID = "biz-1"
ITEM_ID = "item-1"

# Fixed clock origin so FIFO order is explicit in every test
T0 = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _reset_service_singletons():
    """Every test gets fresh planner, aggregator and lot cache."""
    reset_services()
    yield
    reset_services()


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_item() -> Item:
    return Item(
        id=ITEM_ID,
        business_id=BUSINESS_ID,
        name="Rice 25kg",
        category="Food",
        unit_type="bags",
        units_per_pack=10,
        min_stock_level=40,
    )


@pytest.fixture
def make_lot() -> Callable[..., Lot]:
    """Factory for lots received `day` days after T0."""

    def _make(
        lot_id: str,
        remaining: float,
        unit_cost: float,
        day: int = 0,
        original: float | None = None,
        item_id: str = ITEM_ID,
    ) -> Lot:
        received = T0 + timedelta(days=day)
        return Lot(
            lot_id=lot_id,
            business_id=BUSINESS_ID,
            item_id=item_id,
            original_quantity=original if original is not None else max(remaining, 1.0),
            remaining_quantity=remaining,
            unit_cost=unit_cost,
            received_at=received,
            updated_at=received,
        )

    return _make


@pytest.fixture
def make_in() -> Callable[..., InMovement]:
    def _make(lot_id: str, quantity: float, unit_cost: float, day: int = 0) -> InMovement:
        return InMovement(
            movement_id=f"in-{lot_id}",
            business_id=BUSINESS_ID,
            item_id=ITEM_ID,
            quantity=quantity,
            lot_id=lot_id,
            unit_cost=unit_cost,
            counterparty="ACME Supplies",
            actor="alice",
            created_at=T0 + timedelta(days=day),
        )

    return _make


@pytest.fixture
def make_out() -> Callable[..., OutMovement]:
    def _make(
        movement_id: str,
        quantity: float,
        day: int,
        draws: list[tuple[str, float, float]] | None = None,
    ) -> OutMovement:
        return OutMovement(
            movement_id=movement_id,
            business_id=BUSINESS_ID,
            item_id=ITEM_ID,
            quantity=quantity,
            draws=[
                LotDraw(lot_id=lot_id, quantity=q, unit_cost=c)
                for lot_id, q, c in (draws or [])
            ],
            counterparty="Kitchen",
            purpose="Daily use",
            actor="bob",
            created_at=T0 + timedelta(days=day),
        )

    return _make
