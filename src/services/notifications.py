"""
Notification shaping and best-effort dispatch.

Builders turn domain events into NotificationDraft objects. Drafts are
dispatched only after the operation that produced them has been committed;
a failed or slow dispatch is logged and dropped, never raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import Notification, NotificationType
from src.services.levels import LEVEL_TABLE, LevelChange

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


@dataclass(frozen=True)
class NotificationDraft:
    user_id: int
    workspace_id: Optional[int]
    type: NotificationType
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


def format_money(amount: Decimal) -> str:
    """$1,234.56"""
    return f"${Decimal(amount):,.2f}"


def format_percent(value: Decimal) -> str:
    """4 -> '4%', 2.5 -> '2.5%'"""
    return f"{Decimal(value).normalize():f}%"


def json_amount(amount: Decimal) -> float:
    """Amounts go into the JSON payload as plain numbers."""
    return float(amount)


def truncate(text: str, length: int = PREVIEW_LENGTH) -> str:
    return text if len(text) <= length else f"{text[:length]}..."


# ── Commission events ─────────────────────────────────────


def commission_created_for_owner(commission, deal, workspace, sdr_name: str) -> NotificationDraft:
    """Tell the agency owner what they owe for a won deal."""
    return NotificationDraft(
        user_id=workspace.owner_id,
        workspace_id=workspace.id,
        type=NotificationType.COMMISSION_CREATED,
        title="New Commission Due",
        message=(
            f'"{deal.title}" was closed by {sdr_name}. '
            f"Commission due: {format_money(commission.gross_commission)} "
            f"plus {format_money(commission.rake_amount)} rake "
            f"({format_percent(commission.rake_percentage)}). "
            f"Payment due within {settings.commission_due_days} days."
        ),
        data={
            "deal_id": deal.id,
            "commission_id": commission.id,
            "gross_commission": json_amount(commission.gross_commission),
            "rake_amount": json_amount(commission.rake_amount),
            "sdr_name": sdr_name,
        },
    )


def commission_created_for_sdr(commission, deal) -> NotificationDraft:
    """Tell the SDR what they will be paid."""
    return NotificationDraft(
        user_id=commission.sdr_id,
        workspace_id=commission.workspace_id,
        type=NotificationType.COMMISSION_CREATED,
        title="Commission Earned!",
        message=(
            f"You earned {format_money(commission.sdr_payout_amount)} for closing "
            f'"{deal.title}" at Level {commission.sdr_level} '
            f"({format_percent(commission.platform_cut_percentage)} platform fee). "
            f"Payout pending agency payment."
        ),
        data={
            "deal_id": deal.id,
            "commission_id": commission.id,
            "sdr_payout_amount": json_amount(commission.sdr_payout_amount),
            "sdr_level": commission.sdr_level,
            "platform_cut_percentage": json_amount(commission.platform_cut_percentage),
        },
    )


def commission_paid(commission, deal_title: Optional[str]) -> NotificationDraft:
    return NotificationDraft(
        user_id=commission.sdr_id,
        workspace_id=commission.workspace_id,
        type=NotificationType.COMMISSION_PAID,
        title="Commission Paid!",
        message=(
            f"Your commission of {format_money(commission.sdr_payout_amount)} "
            f'for "{deal_title or "a deal"}" has been paid.'
        ),
        data={
            "commission_id": commission.id,
            "amount": json_amount(commission.sdr_payout_amount),
            "deal_title": deal_title,
        },
    )


def account_locked(workspace, amount_due: Decimal) -> NotificationDraft:
    return NotificationDraft(
        user_id=workspace.owner_id,
        workspace_id=workspace.id,
        type=NotificationType.ACCOUNT_LOCKED,
        title="Account Locked",
        message=(
            f"Your account has been locked due to unpaid commissions totaling "
            f"{format_money(amount_due)}. Please pay immediately to restore access."
        ),
        data={"workspace_id": workspace.id, "amount_due": json_amount(amount_due)},
    )


# ── Level events ──────────────────────────────────────────


def level_up(user_id: int, workspace_id: Optional[int], change: LevelChange) -> NotificationDraft:
    policy = LEVEL_TABLE[change.new_level]
    return NotificationDraft(
        user_id=user_id,
        workspace_id=workspace_id,
        type=NotificationType.LEVEL_UP,
        title="Level Up!",
        message=(
            f"Congratulations! You've reached Level {int(change.new_level)} ({policy.label})! "
            f"Your platform fee is now {format_percent(policy.platform_cut)}."
        ),
        data={
            "old_level": int(change.old_level),
            "new_level": int(change.new_level),
            "total_deals_closed": json_amount(change.cumulative_value),
            "new_platform_cut": json_amount(policy.platform_cut),
        },
    )


# ── Dispute events ────────────────────────────────────────


def dispute_created_for_owner(dispute, deal_title: str, raiser_name: str, owner_id: int) -> NotificationDraft:
    return NotificationDraft(
        user_id=owner_id,
        workspace_id=dispute.workspace_id,
        type=NotificationType.DISPUTE_CREATED,
        title="New Dispute Filed",
        message=f'{raiser_name} has filed a dispute on "{deal_title}": {truncate(dispute.reason)}',
        data={"dispute_id": dispute.id, "deal_id": dispute.deal_id},
    )


def dispute_created_for_admin(dispute, deal_title: str, workspace_name: str, admin_id: int) -> NotificationDraft:
    return NotificationDraft(
        user_id=admin_id,
        workspace_id=dispute.workspace_id,
        type=NotificationType.DISPUTE_CREATED,
        title="New Dispute Requires Review",
        message=f'A dispute was filed on "{deal_title}" at {workspace_name}.',
        data={
            "dispute_id": dispute.id,
            "deal_id": dispute.deal_id,
            "workspace_id": dispute.workspace_id,
        },
    )


def dispute_resolved(dispute, deal_title: str) -> NotificationDraft:
    resolution = dispute.status.value
    message = f'Your dispute on "{deal_title}" has been {resolution}.'
    if dispute.admin_notes:
        message += f" Note: {truncate(dispute.admin_notes)}"
    return NotificationDraft(
        user_id=dispute.raised_by,
        workspace_id=dispute.workspace_id,
        type=NotificationType.DISPUTE_RESOLVED,
        title=f"Dispute {resolution.capitalize()}",
        message=message,
        data={"dispute_id": dispute.id, "deal_id": dispute.deal_id, "resolution": resolution},
    )


# ── Dispatch ──────────────────────────────────────────────


async def send_notification(db: AsyncSession, draft: NotificationDraft) -> Notification:
    """Persist one notification and commit it on its own."""
    notification = Notification(
        user_id=draft.user_id,
        workspace_id=draft.workspace_id,
        type=draft.type,
        title=draft.title,
        message=draft.message,
        data=draft.data,
    )
    db.add(notification)
    await db.commit()
    return notification


async def dispatch_notifications(
    db: AsyncSession,
    drafts: Iterable[NotificationDraft],
    timeout: Optional[float] = None,
) -> int:
    """
    Fire-and-forget fan-out.

    Each draft is sent independently under a timeout. Failures are logged
    and skipped so they can never undo or block the committed operation.

    Returns:
        Number of notifications delivered
    """
    timeout = settings.notification_timeout_seconds if timeout is None else timeout
    delivered = 0

    for draft in drafts:
        try:
            await asyncio.wait_for(send_notification(db, draft), timeout=timeout)
            delivered += 1
        except asyncio.TimeoutError:
            logger.warning(
                f"Notification {draft.type.value} to user {draft.user_id} timed out after {timeout}s"
            )
            await _discard(db)
        except Exception as e:
            logger.error(f"Notification {draft.type.value} to user {draft.user_id} failed: {e}")
            await _discard(db)

    return delivered


async def _discard(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except Exception as e:
        logger.error(f"Rollback after failed notification failed: {e}")
