"""API router aggregation."""

from fastapi import APIRouter

from src.api.commissions import router as commissions_router
from src.api.deals import router as deals_router
from src.api.disputes import router as disputes_router
from src.api.health import router as health_router
from src.api.notifications import router as notifications_router
from src.api.sdrs import router as sdrs_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(deals_router)
api_router.include_router(commissions_router)
api_router.include_router(sdrs_router)
api_router.include_router(notifications_router)
api_router.include_router(disputes_router)

__all__ = ["api_router"]
