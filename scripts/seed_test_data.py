"""
Seed test data for local CloserDesk testing.

Usage:
    python scripts/seed_test_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_test_data.py

This script creates:
- An agency owner, a platform admin and two SDRs (one close to Level 2)
- A workspace with a 2% rake
- Deals across the pipeline; won deals go through the commission trigger
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import AsyncSessionLocal
from src.models import Deal, DealStage, Profile, ProfileRole, Workspace
from src.services.deal_closure import set_deal_stage


# ===== TEST DATA =====

TEST_PROFILES = [
    {"email": "owner@acme.test", "full_name": "Olivia Owner", "role": ProfileRole.AGENCY_OWNER},
    {"email": "admin@closerdesk.test", "full_name": "Ada Admin", "role": ProfileRole.PLATFORM_ADMIN},
    {
        "email": "sam@sdr.test",
        "full_name": "Sam Seller",
        "role": ProfileRole.SDR,
        "total_deals_closed_value": Decimal("25000"),
    },
    {"email": "nina@sdr.test", "full_name": "Nina New", "role": ProfileRole.SDR},
]

TEST_DEALS = [
    {"title": "Acme renewal", "value": Decimal("6000"), "sdr": "sam@sdr.test", "stage": DealStage.CLOSED_WON},
    {"title": "Globex pilot", "value": Decimal("10000"), "sdr": "nina@sdr.test", "stage": DealStage.CLOSED_WON},
    {"title": "Initech upsell", "value": Decimal("4500"), "sdr": "nina@sdr.test", "stage": DealStage.MEETING},
    {"title": "Umbrella intro", "value": Decimal("12000"), "sdr": None, "stage": DealStage.NEW},
]


async def get_or_create_profile(db: AsyncSession, data: dict) -> Profile:
    result = await db.execute(select(Profile).where(Profile.email == data["email"]))
    profile = result.scalar_one_or_none()

    if not profile:
        profile = Profile(**data)
        db.add(profile)
        await db.commit()
        print(f"Created profile: {profile.email} ({profile.role.value})")
    else:
        print(f"Profile exists: {profile.email}")

    return profile


async def seed():
    async with AsyncSessionLocal() as db:
        profiles = {}
        for data in TEST_PROFILES:
            profiles[data["email"]] = await get_or_create_profile(db, dict(data))

        owner = profiles["owner@acme.test"]
        result = await db.execute(select(Workspace).where(Workspace.owner_id == owner.id))
        workspace = result.scalars().first()
        if not workspace:
            workspace = Workspace(name="Acme Agency", owner_id=owner.id, rake_percentage=Decimal("2"))
            db.add(workspace)
            await db.commit()
            print(f"Created workspace: {workspace.name}")

        for data in TEST_DEALS:
            sdr = profiles.get(data["sdr"]) if data["sdr"] else None
            deal = Deal(
                workspace_id=workspace.id,
                assigned_to=sdr.id if sdr else None,
                title=data["title"],
                value=data["value"],
                stage=DealStage.NEW,
            )
            db.add(deal)
            await db.commit()

            _, outcome = await set_deal_stage(db, deal.id, data["stage"])
            summary = f"Deal '{deal.title}' -> {data['stage'].value}"
            if outcome is not None:
                summary += f" (commission {outcome.status}"
                if outcome.commission is not None:
                    summary += f", SDR payout {outcome.commission.sdr_payout_amount}"
                summary += ")"
            print(summary)

    print("\nSeed complete!")


if __name__ == "__main__":
    asyncio.run(seed())
