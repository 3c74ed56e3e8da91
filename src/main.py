"""
Sales back office API.

Main FastAPI application with:
- Deals, with synchronous commission calculation
- Commission workflow (approve / pay / void) and payroll batches
- People, org chain and recruiting views, filtered by hierarchical visibility
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api import api_router
from src.config import settings
from src.db import engine, get_db_context
from src.models import SystemSetting
from src.services.settings_store import SettingsStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "max_hierarchy_depth": settings.max_hierarchy_depth,
    "max_team_depth": settings.max_team_depth,
    "recompute_commissions_on_update": settings.recompute_commissions_on_update,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Initializes default system settings
    - Creates the process-wide SettingsStore
    """
    logger.info("Starting back office...")

    async with get_db_context() as db:
        for key, value in DEFAULT_SETTINGS.items():
            existing = await db.get(SystemSetting, key)
            if not existing:
                db.add(SystemSetting.wrap(key, value))
                logger.info(f"Created default setting: {key}")

        await db.commit()

    app.state.settings_store = SettingsStore()
    logger.info("Back office started")

    yield

    logger.info("Shutting down back office...")
    await engine.dispose()


# Create FastAPI application
app = FastAPI(
    title="Sales Back Office",
    description="Commission engine and org-aware visibility for a sales organization",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
