"""
Commission split calculation.

For a won deal:
- Rake: agency's percentage of the deal value (workspace setting, default 2%)
- Gross commission: deal value minus rake
- Platform cut: percentage of the gross commission, set by the SDR's level
- SDR payout: gross commission minus platform cut

The calculation keeps full Decimal precision. Rounding to cents happens once,
when the breakdown is persisted (see CommissionBreakdown.to_cents).
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from src.config import settings
from src.services.exceptions import InvalidInputError
from src.services.levels import HUNDRED, Number, SDRLevel, parse_level, platform_cut_for, to_decimal

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class CommissionBreakdown:
    """How a deal value is split between agency, platform and SDR."""

    deal_value: Decimal
    rake_percentage: Decimal
    sdr_level: SDRLevel
    rake_amount: Decimal
    gross_commission: Decimal
    platform_cut_percentage: Decimal
    platform_cut_amount: Decimal
    sdr_payout_amount: Decimal

    def to_cents(self) -> "CommissionBreakdown":
        """
        Round to cents for storage.

        Rake is rounded half-up and gross commission is derived by subtraction.
        The platform cut is then taken from that stored gross and rounded
        half-up, and payout is derived by subtraction, so both sums stay exact
        and the cut matches its percentage of the stored gross.
        """
        deal_value = self.deal_value.quantize(CENTS, rounding=ROUND_HALF_UP)
        rake_amount = self.rake_amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        gross_commission = deal_value - rake_amount
        platform_cut_amount = (gross_commission * self.platform_cut_percentage / HUNDRED).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        return CommissionBreakdown(
            deal_value=deal_value,
            rake_percentage=self.rake_percentage,
            sdr_level=self.sdr_level,
            rake_amount=rake_amount,
            gross_commission=gross_commission,
            platform_cut_percentage=self.platform_cut_percentage,
            platform_cut_amount=platform_cut_amount,
            sdr_payout_amount=gross_commission - platform_cut_amount,
        )


def resolve_rake_percentage(workspace_rake: Optional[Number]) -> Decimal:
    """Workspace rake, or the configured default when the workspace has none."""
    if workspace_rake is None:
        return settings.default_rake_percentage
    return to_decimal(workspace_rake, "rake_percentage")


def compute_commission(
    deal_value: Number,
    rake_percentage: Number,
    sdr_level,
) -> CommissionBreakdown:
    """Split a deal value into rake, platform cut and SDR payout.

    Pure: safe to call for previews without creating anything.

    Args:
        deal_value: Closed deal value, >= 0
        rake_percentage: Agency rake in percent, within [0, 100]
        sdr_level: 1, 2 or 3

    Returns:
        CommissionBreakdown in full precision

    Raises:
        InvalidInputError: on a negative or non-finite value, a rake outside
            [0, 100] or an unknown level
    """
    value = to_decimal(deal_value, "deal_value")
    if value < 0:
        raise InvalidInputError(f"deal_value must be >= 0, got {deal_value!r}")

    rake = to_decimal(rake_percentage, "rake_percentage")
    if not Decimal("0") <= rake <= HUNDRED:
        raise InvalidInputError(f"rake_percentage must be within [0, 100], got {rake_percentage!r}")

    level = parse_level(sdr_level)

    rake_amount = value * rake / HUNDRED
    gross_commission = value - rake_amount
    platform_cut_percentage = platform_cut_for(level)
    platform_cut_amount = gross_commission * platform_cut_percentage / HUNDRED
    sdr_payout_amount = gross_commission - platform_cut_amount

    return CommissionBreakdown(
        deal_value=value,
        rake_percentage=rake,
        sdr_level=level,
        rake_amount=rake_amount,
        gross_commission=gross_commission,
        platform_cut_percentage=platform_cut_percentage,
        platform_cut_amount=platform_cut_amount,
        sdr_payout_amount=sdr_payout_amount,
    )
