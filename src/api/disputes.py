"""Dispute API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.errors import http_error
from src.db import get_db
from src.models import DisputeStatus
from src.schemas.dispute import DisputeCreateRequest, DisputeResolveRequest, DisputeResponse
from src.services.disputes import raise_dispute, resolve_dispute
from src.services.exceptions import CommissionError

router = APIRouter(prefix="/disputes", tags=["Disputes"])


@router.post("", response_model=DisputeResponse, status_code=status.HTTP_201_CREATED)
async def create_dispute(
    request: DisputeCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Open a dispute on a deal."""
    try:
        dispute = await raise_dispute(db, request.deal_id, request.raised_by, request.reason)
    except CommissionError as e:
        raise http_error(e)

    return DisputeResponse.model_validate(dispute)


@router.post("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve(
    dispute_id: int,
    request: DisputeResolveRequest,
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject an open dispute."""
    try:
        dispute = await resolve_dispute(
            db, dispute_id, DisputeStatus(request.resolution), request.admin_notes
        )
    except CommissionError as e:
        raise http_error(e)

    return DisputeResponse.model_validate(dispute)
