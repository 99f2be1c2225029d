"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.db import get_db
from src.scheduler.jobs import scheduler

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Process is up."""
    return {"status": "healthy", "service": "closerdesk"}


def _scheduler_state() -> str:
    if not settings.scheduler_enabled:
        return "disabled"
    return "running" if scheduler.running else "stopped"


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Ready to take deal closures: the database answers.

    Also reports whether the overdue-commission job is running; a stopped
    scheduler delays lockouts but does not block requests.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        return {
            "status": "not_ready",
            "database": f"error: {e}",
            "scheduler": _scheduler_state(),
        }

    return {
        "status": "ready",
        "database": "connected",
        "scheduler": _scheduler_state(),
    }
