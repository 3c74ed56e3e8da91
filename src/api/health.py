"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.common import get_settings_store
from src.db import get_db
from src.services.settings_store import SettingsStore

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Returns 200 if the process is up."""
    return {"status": "healthy", "service": "backoffice"}


@router.get("/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    store: SettingsStore = Depends(get_settings_store),
):
    """
    Readiness check.

    Verifies the database answers and reports the hierarchy limits the
    engines will run with.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return {
            "status": "not_ready",
            "database": f"error: {e}",
        }

    return {
        "status": "ready",
        "database": "connected",
        "max_hierarchy_depth": await store.max_hierarchy_depth(db),
        "max_team_depth": await store.max_team_depth(db),
    }


@router.get("/live")
async def liveness_check():
    """Used by the orchestrator to decide whether to restart the container."""
    return {"status": "alive"}
