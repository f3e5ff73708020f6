from fastapi import APIRouter

from backend.api.endPoints.catalog_router import router as catalog_router
from backend.api.endPoints.conversations_router import router as conversations_router
from backend.api.endPoints.designs_router import router as designs_router
from backend.api.endPoints.notifications_router import router as notifications_router
from backend.api.endPoints.orders_router import router as orders_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(catalog_router)
api_router.include_router(designs_router)
api_router.include_router(orders_router)
api_router.include_router(notifications_router)
api_router.include_router(conversations_router)
