"""
Deal closure evaluation and idempotent commission creation.

When a deal reaches closed_won:
1. Gate on stage, assigned SDR and existing commission
2. Compute the split from the SDR snapshot (rejects bad input before any write)
3. Credit the deal value to the SDR total in a single UPDATE ... RETURNING;
   the returned row gives the level as it stood before this deal
4. Raise the stored level if the new total crossed a threshold
5. Insert one pending commission and commit: the only durable commit point
6. Fan out notifications best-effort

The unique constraint on commissions.deal_id backs step 1: if two closures
race past the existence check, the loser's insert fails and is reported as
already_exists rather than as an error. The profile row updated in step 3
stays locked until commit, so closures of different deals for one SDR
apply their credits one after the other.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import Commission, CommissionStatus, Deal, DealStage, Profile, Workspace
from src.services import notifications
from src.services.commission import compute_commission, resolve_rake_percentage
from src.services.exceptions import InvalidInputError, NotFoundError, WriteFailedError
from src.services.levels import LevelChange, SDRLevel, effective_level, level_change_for
from src.services.notifications import NotificationDraft, dispatch_notifications

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    NOT_CLOSED_WON = "not_closed_won"
    ALREADY_EXISTS = "already_exists"
    NO_ASSIGNED_SDR = "no_assigned_sdr"


@dataclass
class CommissionOutcome:
    """Either created (with the commission) or skipped (with a reason)."""

    commission: Optional[Commission] = None
    reason: Optional[SkipReason] = None
    level_change: Optional[LevelChange] = None
    notifications: list[NotificationDraft] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.commission is not None

    @property
    def status(self) -> str:
        return "created" if self.created else "skipped"

    @classmethod
    def skipped(cls, reason: SkipReason) -> "CommissionOutcome":
        return cls(reason=reason)


@dataclass(frozen=True)
class SDRSnapshot:
    """
    SDR state at the moment of closure.

    profile is None when the SDR has no profile row; the snapshot then
    defaults to level 1 with nothing closed yet.
    """

    user_id: int
    full_name: Optional[str]
    sdr_level: int
    total_deals_closed_value: Decimal
    profile: Optional[Profile] = None

    @classmethod
    def from_profile(cls, user_id: int, profile: Optional[Profile]) -> "SDRSnapshot":
        if profile is None:
            logger.warning(f"No profile for SDR {user_id}, defaulting to level 1")
            return cls(
                user_id=user_id,
                full_name=None,
                sdr_level=int(SDRLevel.LEVEL_1),
                total_deals_closed_value=Decimal("0"),
            )
        return cls(
            user_id=user_id,
            full_name=profile.full_name,
            sdr_level=profile.sdr_level,
            total_deals_closed_value=profile.total_deals_closed_value or Decimal("0"),
            profile=profile,
        )

    @property
    def display_name(self) -> str:
        return self.full_name or "SDR"


async def commission_exists_for_deal(db: AsyncSession, deal_id: int) -> bool:
    """Fast-path duplicate check; the unique constraint is the real guard."""
    return bool(await db.scalar(select(exists().where(Commission.deal_id == deal_id))))


async def get_sdr_snapshot(db: AsyncSession, user_id: int) -> SDRSnapshot:
    profile = await db.get(Profile, user_id)
    return SDRSnapshot.from_profile(user_id, profile)


async def credit_closed_value(db: AsyncSession, sdr_id: int, amount: Decimal):
    """
    Add a won deal's value to the SDR's running total in one UPDATE.

    The increment happens in SQL and the row stays locked until the caller
    commits, so concurrent closures for the same SDR serialize here.

    Returns:
        (stored sdr_level, new total) or None when the SDR has no profile row
    """
    result = await db.execute(
        update(Profile)
        .where(Profile.id == sdr_id)
        .values(
            total_deals_closed_value=func.coalesce(Profile.total_deals_closed_value, 0) + amount
        )
        .returning(Profile.sdr_level, Profile.total_deals_closed_value)
        .execution_options(synchronize_session=False)
    )
    row = result.one_or_none()
    if row is None:
        logger.warning(f"No profile for SDR {sdr_id}, closed value not credited")
        return None
    return row.sdr_level, Decimal(str(row.total_deals_closed_value))


async def on_deal_won(
    db: AsyncSession,
    deal: Deal,
    workspace: Workspace,
    sdr: Optional[SDRSnapshot],
) -> CommissionOutcome:
    """
    Create the commission for a won deal, at most once.

    Args:
        db: Database session
        deal: The deal that reached closed_won
        workspace: The deal's workspace (rake source)
        sdr: The assigned SDR's state before this deal is credited

    Returns:
        CommissionOutcome, created or skipped

    Raises:
        InvalidInputError: deal value, rake or stored level out of range
        WriteFailedError: the insert failed for a reason other than a duplicate
    """
    deal_id = deal.id

    if deal.stage != DealStage.CLOSED_WON:
        logger.info(f"Deal {deal_id} is {deal.stage.value}, no commission created")
        return CommissionOutcome.skipped(SkipReason.NOT_CLOSED_WON)

    if deal.assigned_to is None or sdr is None:
        logger.info(f"Deal {deal_id} has no assigned SDR, no commission created")
        return CommissionOutcome.skipped(SkipReason.NO_ASSIGNED_SDR)

    if await commission_exists_for_deal(db, deal_id):
        logger.info(f"Commission already exists for deal {deal_id}")
        return CommissionOutcome.skipped(SkipReason.ALREADY_EXISTS)

    rake_percentage = resolve_rake_percentage(workspace.rake_percentage)
    level = effective_level(sdr.sdr_level, sdr.total_deals_closed_value)
    # Validates deal value, rake and level before anything is written
    breakdown = compute_commission(deal.value, rake_percentage, level).to_cents()

    level_change = None
    try:
        credited = await credit_closed_value(db, sdr.user_id, breakdown.deal_value)
        if credited is not None:
            stored_level, total = credited
            # The updated row is authoritative; the snapshot may predate a concurrent closure
            level = effective_level(stored_level or SDRLevel.LEVEL_1, total - breakdown.deal_value)
            if level != breakdown.sdr_level:
                breakdown = compute_commission(deal.value, rake_percentage, level).to_cents()
            level_change = level_change_for(stored_level, total)
            if level_change.leveled_up:
                await db.execute(
                    update(Profile)
                    .where(Profile.id == sdr.user_id)
                    .values(sdr_level=int(level_change.new_level))
                    .execution_options(synchronize_session=False)
                )

        logger.info(
            f"Commission calculation for deal {deal_id}: value={breakdown.deal_value}, "
            f"rake={breakdown.rake_percentage}% ({breakdown.rake_amount}), "
            f"gross={breakdown.gross_commission}, level={int(level)}, "
            f"platform_cut={breakdown.platform_cut_percentage}% ({breakdown.platform_cut_amount}), "
            f"payout={breakdown.sdr_payout_amount}"
        )

        commission = Commission(
            workspace_id=workspace.id,
            deal_id=deal_id,
            sdr_id=deal.assigned_to,
            rake_percentage=breakdown.rake_percentage,
            platform_cut_percentage=breakdown.platform_cut_percentage,
            sdr_level=int(breakdown.sdr_level),
            rake_amount=breakdown.rake_amount,
            gross_commission=breakdown.gross_commission,
            platform_cut_amount=breakdown.platform_cut_amount,
            sdr_payout_amount=breakdown.sdr_payout_amount,
            status=CommissionStatus.PENDING,
        )
        db.add(commission)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if await commission_exists_for_deal(db, deal_id):
            logger.info(f"Concurrent commission insert for deal {deal_id} lost the race")
            return CommissionOutcome.skipped(SkipReason.ALREADY_EXISTS)
        logger.error(f"Commission insert for deal {deal_id} violated a constraint: {e}")
        raise WriteFailedError(f"Failed to create commission for deal {deal_id}") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to create commission for deal {deal_id}: {e}")
        raise WriteFailedError(f"Failed to create commission for deal {deal_id}") from e
    except InvalidInputError:
        await db.rollback()
        raise

    if sdr.profile is not None:
        await db.refresh(sdr.profile)

    logger.info(f"Commission {commission.id} created for deal {deal_id}")

    drafts = [
        notifications.commission_created_for_owner(commission, deal, workspace, sdr.display_name),
        notifications.commission_created_for_sdr(commission, deal),
    ]
    if level_change is not None and level_change.leveled_up:
        logger.info(
            f"SDR {sdr.user_id} leveled up: {int(level_change.old_level)} -> {int(level_change.new_level)}"
        )
        drafts.append(notifications.level_up(sdr.user_id, workspace.id, level_change))

    return CommissionOutcome(
        commission=commission,
        level_change=level_change,
        notifications=drafts,
    )


async def handle_deal_won(db: AsyncSession, deal_id: int) -> CommissionOutcome:
    """
    Trigger-surface entry point for a deal set to closed_won.

    Safe to call repeatedly for the same deal (retries, double submits,
    duplicate triggers): only the first call creates a commission.

    Raises:
        NotFoundError: deal or workspace missing
    """
    deal = await db.get(Deal, deal_id)
    if not deal:
        raise NotFoundError("Deal", deal_id)

    workspace = await db.get(Workspace, deal.workspace_id)
    if not workspace:
        raise NotFoundError("Workspace", deal.workspace_id)

    sdr = None
    if deal.assigned_to is not None:
        sdr = await get_sdr_snapshot(db, deal.assigned_to)

    outcome = await on_deal_won(db, deal, workspace, sdr)

    if outcome.created and outcome.notifications:
        delivered = await dispatch_notifications(db, outcome.notifications)
        if delivered < len(outcome.notifications):
            # A failed dispatch rolls the session back, expiring loaded rows
            await db.refresh(outcome.commission)

    return outcome


async def set_deal_stage(
    db: AsyncSession,
    deal_id: int,
    stage: DealStage,
) -> tuple[Deal, Optional[CommissionOutcome]]:
    """
    Move a deal through the pipeline.

    Setting closed_won triggers commission creation. Setting it again on a
    deal that is already won re-runs the (idempotent) trigger.
    """
    deal = await db.get(Deal, deal_id)
    if not deal:
        raise NotFoundError("Deal", deal_id)

    previous = deal.stage
    deal.stage = stage
    if stage == DealStage.CLOSED_WON and deal.closed_at is None:
        deal.closed_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info(f"Deal {deal_id} moved {previous.value} -> {stage.value}")

    outcome = None
    if stage == DealStage.CLOSED_WON:
        outcome = await handle_deal_won(db, deal_id)
        await db.refresh(deal)

    return deal, outcome
