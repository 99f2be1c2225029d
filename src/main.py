"""
CloserDesk - Commission and SDR leveling service

Main FastAPI application with:
- Deal pipeline trigger (closed_won -> commission)
- Commission preview, listing and payment
- SDR levels and notifications
- Disputes
- Overdue commission job
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api import api_router
from src.config import settings
from src.scheduler.jobs import scheduler, setup_scheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Starts background jobs when enabled

    Shutdown:
    - Stops the scheduler
    """
    logger.info("Starting CloserDesk...")

    if settings.scheduler_enabled:
        setup_scheduler()
        scheduler.start()
        logger.info("Scheduler started")

    logger.info("CloserDesk started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down CloserDesk...")
    if scheduler.running:
        scheduler.shutdown(wait=False)


# Create FastAPI application
app = FastAPI(
    title="CloserDesk",
    description="Commission, payout and SDR leveling service",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
