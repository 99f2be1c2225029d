"""SDR level schemas."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel


class SDRLevelResponse(BaseModel):
    """Level card for an SDR: badge, fee and progress bar."""

    user_id: int
    level: int
    label: str
    platform_cut_percentage: Decimal
    total_deals_closed_value: Decimal
    progress_percent: Decimal
    next_threshold: Optional[Decimal] = None
    remaining: Optional[Decimal] = None

    @classmethod
    def from_progress(cls, user_id: int, progress) -> "SDRLevelResponse":
        return cls(
            user_id=user_id,
            level=int(progress.level),
            label=progress.label,
            platform_cut_percentage=progress.platform_cut,
            total_deals_closed_value=progress.cumulative_value,
            progress_percent=progress.progress_percent.quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            ),
            next_threshold=progress.next_threshold,
            remaining=progress.remaining,
        )
