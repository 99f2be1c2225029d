"""
Tests for deal closure and idempotent commission creation.

Covers:
- Commission created exactly once per won deal
- Skips (not won, already exists, unassigned)
- Losing a concurrent insert race
- Two sessions closing different deals for one SDR
- Write failures leave nothing behind
- Notifications are best-effort
- Level-up on crossing a threshold, sticky stored levels
- Stage moves through set_deal_stage
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.models import (
    Commission,
    CommissionStatus,
    Deal,
    DealStage,
    Notification,
    NotificationType,
    Profile,
    ProfileRole,
    Workspace,
)
from src.services import deal_closure
from src.services import notifications as notifications_service
from src.services.deal_closure import SDRSnapshot, SkipReason, handle_deal_won, set_deal_stage
from src.services.exceptions import InvalidInputError, NotFoundError, WriteFailedError


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


async def _notifications(db):
    result = await db.execute(select(Notification).order_by(Notification.id))
    return result.scalars().all()


# ── Creation ──────────────────────────────────────────────


class TestCommissionCreated:
    @pytest.mark.asyncio
    async def test_creates_pending_commission(self, db_session, make_deal, sdr, workspace):
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.created
        assert outcome.status == "created"
        commission = outcome.commission
        assert commission.deal_id == deal.id
        assert commission.sdr_id == sdr.id
        assert commission.workspace_id == workspace.id
        assert commission.status == CommissionStatus.PENDING
        assert commission.rake_percentage == Decimal("2")
        assert commission.rake_amount == Decimal("200")
        assert commission.gross_commission == Decimal("9800")
        assert commission.platform_cut_percentage == Decimal("5")
        assert commission.platform_cut_amount == Decimal("490")
        assert commission.sdr_payout_amount == Decimal("9310")
        assert commission.sdr_level == 1

    @pytest.mark.asyncio
    async def test_credits_sdr_total(self, db_session, make_deal, sdr):
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        await handle_deal_won(db_session, deal.id)

        assert sdr.total_deals_closed_value == Decimal("10000")
        assert sdr.sdr_level == 1

    @pytest.mark.asyncio
    async def test_notifies_owner_and_sdr(self, db_session, make_deal, owner, sdr):
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        await handle_deal_won(db_session, deal.id)

        rows = await _notifications(db_session)
        assert {n.user_id for n in rows} == {owner.id, sdr.id}
        assert all(n.type == NotificationType.COMMISSION_CREATED for n in rows)
        owner_note = next(n for n in rows if n.user_id == owner.id)
        assert owner_note.title == "New Commission Due"
        assert owner_note.data["gross_commission"] == 9800.0
        assert owner_note.data["sdr_name"] == "Sam Seller"

    @pytest.mark.asyncio
    async def test_default_rake_when_workspace_has_none(self, db_session, make_deal, workspace):
        workspace.rake_percentage = None
        await db_session.commit()
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.commission.rake_percentage == Decimal("2")
        assert outcome.commission.rake_amount == Decimal("200")

    @pytest.mark.asyncio
    async def test_invalid_rake_creates_nothing(self, db_session, make_deal, workspace):
        workspace.rake_percentage = Decimal("150")
        await db_session.commit()
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        with pytest.raises(InvalidInputError):
            await handle_deal_won(db_session, deal.id)

        assert await _count(db_session, Commission) == 0


# ── Skips ─────────────────────────────────────────────────


class TestCommissionSkipped:
    @pytest.mark.asyncio
    async def test_second_call_is_a_no_op(self, db_session, make_deal, sdr):
        deal = await make_deal(stage=DealStage.CLOSED_WON)
        await handle_deal_won(db_session, deal.id)

        outcome = await handle_deal_won(db_session, deal.id)

        assert not outcome.created
        assert outcome.status == "skipped"
        assert outcome.reason == SkipReason.ALREADY_EXISTS
        assert await _count(db_session, Commission) == 1
        assert await _count(db_session, Notification) == 2
        assert sdr.total_deals_closed_value == Decimal("10000")

    @pytest.mark.asyncio
    async def test_not_closed_won(self, db_session, make_deal):
        deal = await make_deal(stage=DealStage.PROPOSAL)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.reason == SkipReason.NOT_CLOSED_WON
        assert await _count(db_session, Commission) == 0
        assert await _count(db_session, Notification) == 0

    @pytest.mark.asyncio
    async def test_closed_lost(self, db_session, make_deal):
        deal = await make_deal(stage=DealStage.CLOSED_LOST)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.reason == SkipReason.NOT_CLOSED_WON

    @pytest.mark.asyncio
    async def test_unassigned_deal(self, db_session, make_deal):
        deal = await make_deal(stage=DealStage.CLOSED_WON, assigned_to=None)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.reason == SkipReason.NO_ASSIGNED_SDR
        assert await _count(db_session, Commission) == 0

    @pytest.mark.asyncio
    async def test_missing_deal(self, db_session):
        with pytest.raises(NotFoundError):
            await handle_deal_won(db_session, 12345)


# ── Races and failures ────────────────────────────────────


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_losing_insert_race_reports_already_exists(
        self, db_session, make_deal, sdr, workspace, monkeypatch
    ):
        deal = await make_deal(stage=DealStage.CLOSED_WON)
        # The winner's row is already committed...
        db_session.add(
            Commission(
                workspace_id=workspace.id,
                deal_id=deal.id,
                sdr_id=sdr.id,
                rake_percentage=Decimal("2"),
                platform_cut_percentage=Decimal("5"),
                sdr_level=1,
                rake_amount=Decimal("200"),
                gross_commission=Decimal("9800"),
                platform_cut_amount=Decimal("490"),
                sdr_payout_amount=Decimal("9310"),
            )
        )
        await db_session.commit()

        # ...but this caller's existence check ran before it landed
        real_check = deal_closure.commission_exists_for_deal
        calls = []

        async def stale_first_check(db, deal_id):
            calls.append(deal_id)
            if len(calls) == 1:
                return False
            return await real_check(db, deal_id)

        monkeypatch.setattr(deal_closure, "commission_exists_for_deal", stale_first_check)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.reason == SkipReason.ALREADY_EXISTS
        assert len(calls) == 2
        assert await _count(db_session, Commission) == 1
        await db_session.refresh(sdr)
        assert sdr.total_deals_closed_value == Decimal("0")

    @pytest.mark.asyncio
    async def test_write_failure_raises_and_persists_nothing(self, db_session, make_deal, sdr, monkeypatch):
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        async def failing_commit():
            raise OperationalError("INSERT INTO commissions", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(WriteFailedError):
            await handle_deal_won(db_session, deal.id)

        monkeypatch.undo()
        assert await _count(db_session, Commission) == 0
        await db_session.refresh(sdr)
        assert sdr.total_deals_closed_value == Decimal("0")

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_commission(self, db_session, make_deal, sdr, monkeypatch):
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        async def broken_send(db, draft):
            raise RuntimeError("notification backend down")

        monkeypatch.setattr(notifications_service, "send_notification", broken_send)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.created
        assert outcome.commission.gross_commission == Decimal("9800")
        assert await _count(db_session, Commission) == 1
        assert await _count(db_session, Notification) == 0
        await db_session.refresh(sdr)
        assert sdr.total_deals_closed_value == Decimal("10000")


# ── Levels ────────────────────────────────────────────────


class TestLevelUpOnClosure:
    @pytest.mark.asyncio
    async def test_crossing_threshold_levels_up_after_commission(self, db_session, make_deal, sdr):
        sdr.total_deals_closed_value = Decimal("25000")
        await db_session.commit()
        deal = await make_deal(value="6000", stage=DealStage.CLOSED_WON)

        outcome = await handle_deal_won(db_session, deal.id)

        # The deal that crosses the threshold is paid at the old level
        assert outcome.commission.sdr_level == 1
        assert outcome.commission.platform_cut_percentage == Decimal("5")
        assert outcome.level_change.leveled_up
        assert sdr.sdr_level == 2
        assert sdr.total_deals_closed_value == Decimal("31000")

        rows = await _notifications(db_session)
        assert len(rows) == 3
        level_note = next(n for n in rows if n.type == NotificationType.LEVEL_UP)
        assert level_note.user_id == sdr.id
        assert level_note.title == "Level Up!"
        assert level_note.data == {
            "old_level": 1,
            "new_level": 2,
            "total_deals_closed": 31000.0,
            "new_platform_cut": 4.0,
        }
        assert "Level 2 (Silver)" in level_note.message
        assert "4%" in level_note.message

    @pytest.mark.asyncio
    async def test_next_deal_uses_new_level(self, db_session, make_deal, sdr):
        sdr.total_deals_closed_value = Decimal("25000")
        await db_session.commit()
        first = await make_deal(value="6000", stage=DealStage.CLOSED_WON)
        await handle_deal_won(db_session, first.id)

        second = await make_deal(value="10000", stage=DealStage.CLOSED_WON, title="Second deal")
        outcome = await handle_deal_won(db_session, second.id)

        assert outcome.commission.sdr_level == 2
        assert outcome.commission.platform_cut_amount == Decimal("392")
        assert not outcome.level_change.leveled_up

    @pytest.mark.asyncio
    async def test_stored_level_is_sticky(self, db_session, make_deal, sdr):
        sdr.sdr_level = 3
        sdr.total_deals_closed_value = Decimal("1000")
        await db_session.commit()
        deal = await make_deal(stage=DealStage.CLOSED_WON)

        outcome = await handle_deal_won(db_session, deal.id)

        assert outcome.commission.sdr_level == 3
        assert outcome.commission.platform_cut_amount == Decimal("245")
        assert sdr.sdr_level == 3


# ── Concurrent closures for one SDR ───────────────────────


async def _seed_two_won_deals(engine, total, value_a, value_b):
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as db:
        owner = Profile(email="owner@agency.test", full_name="Olivia Owner", role=ProfileRole.AGENCY_OWNER)
        sdr = Profile(
            email="sam@sdr.test",
            full_name="Sam Seller",
            role=ProfileRole.SDR,
            sdr_level=1,
            total_deals_closed_value=Decimal(total),
        )
        db.add_all([owner, sdr])
        await db.commit()

        workspace = Workspace(name="Acme Agency", owner_id=owner.id, rake_percentage=Decimal("2"))
        db.add(workspace)
        await db.commit()

        deals = [
            Deal(
                workspace_id=workspace.id,
                assigned_to=sdr.id,
                title=title,
                value=Decimal(value),
                stage=DealStage.CLOSED_WON,
            )
            for title, value in (("Deal A", value_a), ("Deal B", value_b))
        ]
        db.add_all(deals)
        await db.commit()
        return async_session, sdr.id, [deal.id for deal in deals]


async def _close(db, deal_id, snapshot):
    deal = await db.get(Deal, deal_id)
    workspace = await db.get(Workspace, deal.workspace_id)
    return await deal_closure.on_deal_won(db, deal, workspace, snapshot)


async def _close_both(async_session, sdr_id, deal_a, deal_b):
    """Both sessions read the SDR before either closure commits."""
    async with async_session() as s1, async_session() as s2:
        snapshot_a = await deal_closure.get_sdr_snapshot(s1, sdr_id)
        snapshot_b = await deal_closure.get_sdr_snapshot(s2, sdr_id)

        out_a = await _close(s1, deal_a, snapshot_a)
        out_b = await _close(s2, deal_b, snapshot_b)

    async with async_session() as db:
        stored = (
            await db.execute(
                select(Profile.sdr_level, Profile.total_deals_closed_value).where(Profile.id == sdr_id)
            )
        ).one()
    return out_a, out_b, stored


def _level_up_drafts(*outcomes):
    return [
        draft
        for outcome in outcomes
        for draft in outcome.notifications
        if draft.type == NotificationType.LEVEL_UP
    ]


class TestConcurrentClosuresForOneSDR:
    @pytest.mark.asyncio
    async def test_both_deals_are_credited(self, file_db_engine):
        async_session, sdr_id, (deal_a, deal_b) = await _seed_two_won_deals(
            file_db_engine, "10000", "4000", "7000"
        )

        out_a, out_b, (level, total) = await _close_both(async_session, sdr_id, deal_a, deal_b)

        assert out_a.created and out_b.created
        assert total == Decimal("21000")
        assert level == 1
        assert _level_up_drafts(out_a, out_b) == []

    @pytest.mark.asyncio
    async def test_second_closure_crosses_threshold_once(self, file_db_engine):
        async_session, sdr_id, (deal_a, deal_b) = await _seed_two_won_deals(
            file_db_engine, "25000", "3000", "3000"
        )

        out_a, out_b, (level, total) = await _close_both(async_session, sdr_id, deal_a, deal_b)

        assert total == Decimal("31000")
        assert level == 2
        assert not out_a.level_change.leveled_up
        assert out_b.level_change.leveled_up
        assert out_b.level_change.cumulative_value == Decimal("31000")
        # 28,000 before deal B: still paid at level 1
        assert out_b.commission.sdr_level == 1
        assert len(_level_up_drafts(out_a, out_b)) == 1

    @pytest.mark.asyncio
    async def test_later_closure_is_paid_at_level_reached_by_earlier_one(self, file_db_engine):
        async_session, sdr_id, (deal_a, deal_b) = await _seed_two_won_deals(
            file_db_engine, "25000", "6000", "6000"
        )

        out_a, out_b, (level, total) = await _close_both(async_session, sdr_id, deal_a, deal_b)

        assert total == Decimal("37000")
        assert level == 2
        assert out_a.level_change.leveled_up
        assert not out_b.level_change.leveled_up
        assert len(_level_up_drafts(out_a, out_b)) == 1

        assert out_a.commission.sdr_level == 1
        assert out_a.commission.platform_cut_amount == Decimal("294")
        # Deal B's session saw level 1 when it started; the credited row says level 2
        assert out_b.commission.sdr_level == 2
        assert out_b.commission.platform_cut_percentage == Decimal("4")
        assert out_b.commission.platform_cut_amount == Decimal("235.20")
        assert out_b.commission.sdr_payout_amount == Decimal("5644.80")


class TestSDRSnapshot:
    def test_missing_profile(self):
        snapshot = SDRSnapshot.from_profile(7, None)

        assert snapshot.sdr_level == 1
        assert snapshot.total_deals_closed_value == Decimal("0")
        assert snapshot.display_name == "SDR"


# ── set_deal_stage ────────────────────────────────────────


class TestSetDealStage:
    @pytest.mark.asyncio
    async def test_move_to_closed_won_creates_commission(self, db_session, make_deal):
        deal = await make_deal()

        updated, outcome = await set_deal_stage(db_session, deal.id, DealStage.CLOSED_WON)

        assert updated.stage == DealStage.CLOSED_WON
        assert updated.closed_at is not None
        assert outcome.created

    @pytest.mark.asyncio
    async def test_other_stages_do_not_trigger(self, db_session, make_deal):
        deal = await make_deal(stage=DealStage.NEW)

        updated, outcome = await set_deal_stage(db_session, deal.id, DealStage.MEETING)

        assert updated.stage == DealStage.MEETING
        assert outcome is None
        assert await _count(db_session, Commission) == 0

    @pytest.mark.asyncio
    async def test_reopen_and_close_again_does_not_duplicate(self, db_session, make_deal, sdr):
        deal = await make_deal()
        await set_deal_stage(db_session, deal.id, DealStage.CLOSED_WON)
        await set_deal_stage(db_session, deal.id, DealStage.PROPOSAL)

        _, outcome = await set_deal_stage(db_session, deal.id, DealStage.CLOSED_WON)

        assert outcome.reason == SkipReason.ALREADY_EXISTS
        assert await _count(db_session, Commission) == 1
        assert sdr.total_deals_closed_value == Decimal("10000")

    @pytest.mark.asyncio
    async def test_missing_deal(self, db_session):
        with pytest.raises(NotFoundError):
            await set_deal_stage(db_session, 404, DealStage.CLOSED_WON)
