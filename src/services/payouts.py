"""
Commission payment and overdue processing.

- Marking a commission paid unlocks the workspace once nothing is outstanding
- Pending commissions older than the lock window become overdue and lock
  their workspace until paid

Charging the agency through a payment provider is handled elsewhere; this
module only records the outcome.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.config import settings
from src.models import Commission, CommissionStatus, OUTSTANDING_STATUSES, Workspace
from src.services import notifications
from src.services.exceptions import InvalidStateError, NotFoundError
from src.services.notifications import dispatch_notifications

logger = logging.getLogger(__name__)


@dataclass
class OverdueReport:
    processed: int = 0
    locked_workspaces: list[int] = field(default_factory=list)


def due_date_for(commission: Commission) -> datetime:
    """Date by which the agency is expected to pay."""
    return commission.created_at + timedelta(days=settings.commission_due_days)


async def outstanding_total(db: AsyncSession, workspace_id: int) -> Decimal:
    """What the workspace still owes: gross commission plus rake, unpaid rows only."""
    total = await db.scalar(
        select(func.coalesce(func.sum(Commission.gross_commission + Commission.rake_amount), 0))
        .where(
            Commission.workspace_id == workspace_id,
            Commission.status.in_(OUTSTANDING_STATUSES),
        )
    )
    return Decimal(str(total or 0))


async def mark_commission_paid(
    db: AsyncSession,
    commission_id: int,
    paid_at: Optional[datetime] = None,
) -> Commission:
    """
    Record that the agency paid a commission.

    Raises:
        NotFoundError: commission missing
        InvalidStateError: commission already paid
    """
    result = await db.execute(
        select(Commission)
        .options(selectinload(Commission.deal), selectinload(Commission.workspace))
        .where(Commission.id == commission_id)
    )
    commission = result.scalar_one_or_none()
    if not commission:
        raise NotFoundError("Commission", commission_id)

    if commission.status == CommissionStatus.PAID:
        raise InvalidStateError(f"Commission {commission_id} is already paid")

    commission.status = CommissionStatus.PAID
    commission.paid_at = paid_at or datetime.now(timezone.utc)
    await db.flush()

    workspace = commission.workspace
    if workspace.is_locked:
        remaining = await db.scalar(
            select(func.count())
            .select_from(Commission)
            .where(
                Commission.workspace_id == workspace.id,
                Commission.status.in_(OUTSTANDING_STATUSES),
            )
        )
        if not remaining:
            workspace.is_locked = False
            logger.info(f"Unlocked workspace {workspace.id}")

    await db.commit()
    logger.info(f"Commission {commission_id} marked paid")

    deal_title = commission.deal.title if commission.deal else None
    delivered = await dispatch_notifications(db, [notifications.commission_paid(commission, deal_title)])
    if not delivered:
        await db.refresh(commission)

    return commission


async def process_overdue_commissions(
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> OverdueReport:
    """
    Mark long-unpaid commissions overdue and lock their workspaces.

    Each workspace is locked (and its owner notified) at most once per run,
    and never again while it stays locked.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=settings.commission_lock_days)

    result = await db.execute(
        select(Commission)
        .options(selectinload(Commission.workspace))
        .where(
            Commission.status == CommissionStatus.PENDING,
            Commission.created_at < cutoff,
        )
        .order_by(Commission.created_at.asc())
    )
    commissions = result.scalars().all()

    report = OverdueReport()
    newly_locked: dict[int, Workspace] = {}

    for commission in commissions:
        commission.status = CommissionStatus.OVERDUE
        report.processed += 1

        workspace = commission.workspace
        if not workspace.is_locked:
            workspace.is_locked = True
            newly_locked[workspace.id] = workspace
            logger.info(f"Locking workspace {workspace.id}: commission {commission.id} is overdue")

    await db.commit()

    drafts = []
    for workspace_id, workspace in newly_locked.items():
        report.locked_workspaces.append(workspace_id)
        drafts.append(notifications.account_locked(workspace, await outstanding_total(db, workspace_id)))

    if drafts:
        await dispatch_notifications(db, drafts)

    logger.info(
        f"Overdue processing: {report.processed} commissions, "
        f"{len(report.locked_workspaces)} workspaces locked"
    )
    return report
