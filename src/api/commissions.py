"""Commission API endpoints."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.errors import http_error
from src.db import get_db
from src.models import Commission, CommissionStatus
from src.schemas.commission import (
    CommissionListResponse,
    CommissionPreviewResponse,
    CommissionResponse,
)
from src.services.commission import compute_commission, resolve_rake_percentage
from src.services.exceptions import CommissionError
from src.services.payouts import mark_commission_paid

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.get("/preview", response_model=CommissionPreviewResponse)
async def preview_commission(
    deal_value: Decimal = Query(...),
    sdr_level: int = Query(1),
    rake_percentage: Optional[Decimal] = Query(None),
):
    """
    Show how a deal would split without persisting anything.

    rake_percentage defaults to the platform default rake.
    """
    try:
        breakdown = compute_commission(
            deal_value, resolve_rake_percentage(rake_percentage), sdr_level
        )
    except CommissionError as e:
        raise http_error(e)

    return CommissionPreviewResponse.from_breakdown(breakdown)


@router.get("", response_model=CommissionListResponse)
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    workspace_id: Optional[int] = Query(None),
    sdr_id: Optional[int] = Query(None),
    status: Optional[CommissionStatus] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List commissions, newest first."""
    query = select(Commission)

    if workspace_id is not None:
        query = query.where(Commission.workspace_id == workspace_id)

    if sdr_id is not None:
        query = query.where(Commission.sdr_id == sdr_id)

    if status is not None:
        query = query.where(Commission.status == status)

    # Count total
    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    # Paginate
    query = query.order_by(Commission.created_at.desc(), Commission.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    commissions = result.scalars().all()

    return CommissionListResponse(
        items=[CommissionResponse.model_validate(c) for c in commissions],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page,
    )


@router.post("/{commission_id}/pay", response_model=CommissionResponse)
async def pay_commission(
    commission_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Record payment of a commission; unlocks the workspace when nothing else is owed."""
    try:
        commission = await mark_commission_paid(db, commission_id)
    except CommissionError as e:
        raise http_error(e)

    return CommissionResponse.model_validate(commission)
