"""
Pytest configuration and fixtures.
"""

import os
from decimal import Decimal

os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.models import Base, Deal, DealStage, Profile, ProfileRole, Workspace


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _enforce_foreign_keys(engine):
    """SQLite ignores foreign keys unless asked, per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


async def _create_engine(url):
    engine = _enforce_foreign_keys(create_async_engine(url, echo=False))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = await _create_engine(TEST_DATABASE_URL)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def file_db_engine(tmp_path):
    """File-backed engine: every session gets its own connection."""
    engine = await _create_engine(f"sqlite+aiosqlite:///{tmp_path / 'closerdesk.db'}")

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


# ── Seed data ─────────────────────────────────────────────


@pytest_asyncio.fixture
async def owner(db_session):
    profile = Profile(email="owner@agency.test", full_name="Olivia Owner", role=ProfileRole.AGENCY_OWNER)
    db_session.add(profile)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def sdr(db_session):
    profile = Profile(
        email="sam@sdr.test",
        full_name="Sam Seller",
        role=ProfileRole.SDR,
        sdr_level=1,
        total_deals_closed_value=Decimal("0"),
    )
    db_session.add(profile)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def admin(db_session):
    profile = Profile(email="admin@platform.test", full_name="Ada Admin", role=ProfileRole.PLATFORM_ADMIN)
    db_session.add(profile)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def workspace(db_session, owner):
    ws = Workspace(name="Acme Agency", owner_id=owner.id, rake_percentage=Decimal("2"))
    db_session.add(ws)
    await db_session.commit()
    return ws


@pytest.fixture
def make_deal(db_session, workspace, sdr):
    """Factory: make_deal(value=..., stage=..., assigned_to=...)."""

    async def _make_deal(
        value="10000",
        stage=DealStage.PROPOSAL,
        assigned_to="sdr",
        title="Acme renewal",
    ):
        deal = Deal(
            workspace_id=workspace.id,
            assigned_to=sdr.id if assigned_to == "sdr" else assigned_to,
            title=title,
            value=Decimal(value),
            stage=stage,
        )
        db_session.add(deal)
        await db_session.commit()
        return deal

    return _make_deal
