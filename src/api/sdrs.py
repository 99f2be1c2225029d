"""SDR level API."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.errors import http_error
from src.db import get_db
from src.models import Profile
from src.schemas.level import SDRLevelResponse
from src.services.exceptions import CommissionError
from src.services.levels import progress_for_profile

router = APIRouter(prefix="/sdrs", tags=["SDRs"])


@router.get("/{user_id}/level", response_model=SDRLevelResponse)
async def get_sdr_level(
    user_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Level badge, platform fee and progress towards the next level."""
    profile = await db.get(Profile, user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {user_id} not found",
        )

    try:
        progress = progress_for_profile(profile.sdr_level, profile.total_deals_closed_value or 0)
    except CommissionError as e:
        raise http_error(e)

    return SDRLevelResponse.from_progress(user_id, progress)
