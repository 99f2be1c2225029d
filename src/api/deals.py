"""Deal pipeline API: stage moves and the closed_won trigger."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.errors import http_error
from src.db import get_db
from src.schemas.commission import CommissionOutcomeResponse
from src.schemas.deal import DealResponse, DealStageUpdateRequest, DealStageUpdateResponse
from src.services.deal_closure import handle_deal_won, set_deal_stage
from src.services.exceptions import CommissionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["Deals"])


@router.patch("/{deal_id}/stage", response_model=DealStageUpdateResponse)
async def update_deal_stage(
    deal_id: int,
    request: DealStageUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Move a deal to another pipeline stage.

    Moving to closed_won creates the commission (once) and reports the
    outcome alongside the deal.
    """
    try:
        deal, outcome = await set_deal_stage(db, deal_id, request.stage)
    except CommissionError as e:
        raise http_error(e)

    return DealStageUpdateResponse(
        deal=DealResponse.model_validate(deal),
        commission=CommissionOutcomeResponse.from_outcome(outcome) if outcome else None,
    )


@router.post("/{deal_id}/won", response_model=CommissionOutcomeResponse)
async def deal_won(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Re-run the closed_won trigger for a deal.

    Idempotent: returns status=skipped with a reason when no commission
    is created.
    """
    try:
        outcome = await handle_deal_won(db, deal_id)
    except CommissionError as e:
        raise http_error(e)

    return CommissionOutcomeResponse.from_outcome(outcome)
