"""Deal schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from src.models.deal import DealStage
from src.schemas.commission import CommissionOutcomeResponse


class DealStageUpdateRequest(BaseModel):
    """Pipeline move (drag-and-drop, bulk stage change)."""

    stage: DealStage


class DealResponse(BaseModel):
    id: int
    workspace_id: int
    assigned_to: Optional[int]
    title: str
    value: Decimal
    stage: DealStage
    closed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DealStageUpdateResponse(BaseModel):
    deal: DealResponse
    commission: Optional[CommissionOutcomeResponse] = None
