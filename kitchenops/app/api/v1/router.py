from fastapi import APIRouter

from kitchenops.app.api.v1.endpoints.health import router as health_router
from kitchenops.app.api.v1.endpoints.events import router as events_router
from kitchenops.app.api.v1.endpoints.suppliers import router as suppliers_router
from kitchenops.app.api.v1.endpoints.purchase_orders import router as purchase_orders_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(events_router, tags=["events"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(purchase_orders_router, tags=["purchase_orders"])
