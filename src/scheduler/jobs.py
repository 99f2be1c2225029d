"""
Background job definitions using APScheduler.

Jobs include:
- Overdue commission processing (mark overdue, lock workspaces)
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.config import settings
from src.db import get_db_context
from src.services.payouts import process_overdue_commissions

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def overdue_commissions_job():
    """Mark long-unpaid commissions overdue and lock their workspaces."""
    logger.debug("Running overdue commissions job")
    try:
        async with get_db_context() as db:
            report = await process_overdue_commissions(db)
            if report.processed:
                logger.info(
                    f"Overdue commissions job: {report.processed} overdue, "
                    f"locked workspaces {report.locked_workspaces}"
                )
    except Exception as e:
        logger.error(f"Overdue commissions job error: {e}")


def setup_scheduler():
    """
    Configure and add all scheduled jobs.

    Called during application startup.
    """
    scheduler.add_job(
        overdue_commissions_job,
        trigger=IntervalTrigger(minutes=settings.overdue_check_interval_minutes),
        id="overdue_commissions",
        name="Process overdue commissions",
        replace_existing=True,
    )

    logger.info("Scheduler configured with jobs")
