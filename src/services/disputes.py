"""
Disputes on deals.

An SDR (or owner) raises a dispute; a platform admin approves or rejects
it. Both steps notify the people involved.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Deal, Dispute, DisputeStatus, Profile, ProfileRole, Workspace
from src.services import notifications
from src.services.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from src.services.notifications import dispatch_notifications

logger = logging.getLogger(__name__)

RESOLUTIONS = (DisputeStatus.APPROVED, DisputeStatus.REJECTED)


async def raise_dispute(
    db: AsyncSession,
    deal_id: int,
    raised_by: int,
    reason: str,
) -> Dispute:
    """
    Open a dispute on a deal.

    Notifies the workspace owner (unless they raised it) and every
    platform admin.
    """
    reason = (reason or "").strip()
    if not reason:
        raise InvalidInputError("Dispute reason is required")

    deal = await db.get(Deal, deal_id)
    if not deal:
        raise NotFoundError("Deal", deal_id)

    workspace = await db.get(Workspace, deal.workspace_id)
    if not workspace:
        raise NotFoundError("Workspace", deal.workspace_id)

    raiser = await db.get(Profile, raised_by)
    if not raiser:
        raise NotFoundError("Profile", raised_by)

    dispute = Dispute(
        workspace_id=workspace.id,
        deal_id=deal.id,
        raised_by=raised_by,
        reason=reason,
        status=DisputeStatus.OPEN,
    )
    db.add(dispute)
    await db.commit()
    logger.info(f"Dispute {dispute.id} raised on deal {deal_id} by {raised_by}")

    admins = await db.execute(
        select(Profile.id).where(Profile.role == ProfileRole.PLATFORM_ADMIN)
    )
    admin_ids = list(admins.scalars().all())

    drafts = []
    if workspace.owner_id != raised_by:
        drafts.append(
            notifications.dispute_created_for_owner(
                dispute, deal.title, raiser.display_name, workspace.owner_id
            )
        )
    for admin_id in admin_ids:
        drafts.append(
            notifications.dispute_created_for_admin(dispute, deal.title, workspace.name, admin_id)
        )

    delivered = await dispatch_notifications(db, drafts)
    logger.info(f"Dispute {dispute.id}: {delivered}/{len(drafts)} notifications sent")
    if delivered < len(drafts):
        await db.refresh(dispute)

    return dispute


async def resolve_dispute(
    db: AsyncSession,
    dispute_id: int,
    resolution: DisputeStatus,
    admin_notes: Optional[str] = None,
) -> Dispute:
    """
    Approve or reject an open dispute and tell the person who raised it.

    Raises:
        InvalidInputError: resolution is not approved/rejected
        NotFoundError: dispute missing
        InvalidStateError: dispute already resolved
    """
    if resolution not in RESOLUTIONS:
        raise InvalidInputError(f"Invalid resolution: {resolution!r}")

    dispute = await db.get(Dispute, dispute_id)
    if not dispute:
        raise NotFoundError("Dispute", dispute_id)

    if dispute.status != DisputeStatus.OPEN:
        raise InvalidStateError(f"Dispute {dispute_id} is already {dispute.status.value}")

    deal = await db.get(Deal, dispute.deal_id)

    dispute.status = resolution
    dispute.admin_notes = admin_notes
    dispute.resolved_at = datetime.now(timezone.utc)
    await db.commit()
    logger.info(f"Dispute {dispute_id} {resolution.value}")

    deal_title = deal.title if deal else "a deal"
    delivered = await dispatch_notifications(db, [notifications.dispute_resolved(dispute, deal_title)])
    if not delivered:
        await db.refresh(dispute)

    return dispute
