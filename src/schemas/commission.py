"""Commission schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.commission import CommissionStatus


class CommissionPreviewResponse(BaseModel):
    """Split of a hypothetical deal. Nothing is persisted."""

    deal_value: Decimal
    rake_percentage: Decimal
    sdr_level: int
    rake_amount: Decimal
    gross_commission: Decimal
    platform_cut_percentage: Decimal
    platform_cut_amount: Decimal
    sdr_payout_amount: Decimal

    @classmethod
    def from_breakdown(cls, breakdown) -> "CommissionPreviewResponse":
        return cls(
            deal_value=breakdown.deal_value,
            rake_percentage=breakdown.rake_percentage,
            sdr_level=int(breakdown.sdr_level),
            rake_amount=breakdown.rake_amount,
            gross_commission=breakdown.gross_commission,
            platform_cut_percentage=breakdown.platform_cut_percentage,
            platform_cut_amount=breakdown.platform_cut_amount,
            sdr_payout_amount=breakdown.sdr_payout_amount,
        )


class CommissionResponse(BaseModel):
    """Stored commission."""

    id: int
    workspace_id: int
    deal_id: int
    sdr_id: int
    rake_percentage: Decimal
    rake_amount: Decimal
    gross_commission: Decimal
    platform_cut_percentage: Decimal
    platform_cut_amount: Decimal
    sdr_payout_amount: Decimal
    sdr_level: int
    status: CommissionStatus
    created_at: datetime
    paid_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CommissionListResponse(BaseModel):
    items: List[CommissionResponse]
    total: int
    page: int
    per_page: int
    pages: int


class CommissionOutcomeResponse(BaseModel):
    """Result of a closed_won trigger."""

    status: str = Field(..., pattern="^(created|skipped)$")
    reason: Optional[str] = None
    commission: Optional[CommissionResponse] = None
    leveled_up: bool = False
    new_level: Optional[int] = None

    @classmethod
    def from_outcome(cls, outcome) -> "CommissionOutcomeResponse":
        change = outcome.level_change
        return cls(
            status=outcome.status,
            reason=outcome.reason.value if outcome.reason else None,
            commission=(
                CommissionResponse.model_validate(outcome.commission)
                if outcome.commission is not None
                else None
            ),
            leveled_up=bool(change and change.leveled_up),
            new_level=int(change.new_level) if change else None,
        )
