"""Business logic services."""

from src.services.commission import CommissionBreakdown, compute_commission
from src.services.deal_closure import CommissionOutcome, SkipReason, handle_deal_won, on_deal_won
from src.services.levels import SDRLevel, detect_level_up, level_for, platform_cut_for

__all__ = [
    "CommissionBreakdown",
    "CommissionOutcome",
    "SDRLevel",
    "SkipReason",
    "compute_commission",
    "detect_level_up",
    "handle_deal_won",
    "level_for",
    "on_deal_won",
    "platform_cut_for",
]
