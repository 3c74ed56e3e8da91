"""API router aggregation."""

from fastapi import APIRouter

from src.api.commissions import router as commissions_router
from src.api.deals import router as deals_router
from src.api.health import router as health_router
from src.api.payroll import router as payroll_router
from src.api.people import router as people_router
from src.api.recruiting import documents_router, recruits_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(deals_router)
api_router.include_router(commissions_router)
api_router.include_router(payroll_router)
api_router.include_router(people_router)
api_router.include_router(recruits_router)
api_router.include_router(documents_router)

__all__ = ["api_router"]
