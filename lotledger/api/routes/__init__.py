"""API route modules."""

from lotledger.api.routes.health import router as health_router
from lotledger.api.routes.inventory import router as inventory_router
from lotledger.api.routes.items import router as items_router

__all__ = [
    "health_router",
    "items_router",
    "inventory_router",
]
