"""
Commission model: the payout obligation created from one won deal.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.profile import Profile
    from src.models.workspace import Workspace


class CommissionStatus(str, Enum):
    """Payment status of a commission."""
    PENDING = "pending"
    OVERDUE = "overdue"    # Unpaid past the lock window
    PAID = "paid"


OUTSTANDING_STATUSES = (CommissionStatus.PENDING, CommissionStatus.OVERDUE)


class Commission(BaseModel):
    """
    Commission for a closed_won deal.

    At most one row per deal: the unique constraint on deal_id is what makes
    commission creation safe under duplicate or concurrent closure events.

    Stored amounts satisfy exactly:
        rake_amount + gross_commission == deal value
        platform_cut_amount + sdr_payout_amount == gross_commission
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint("deal_id", name="commissions_unique_deal"),
    )

    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id"),
        nullable=False,
        index=True,
    )
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id"),
        nullable=False,
    )
    sdr_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )

    # Rates applied at closure
    rake_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )
    platform_cut_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )
    sdr_level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="SDR level the platform cut was taken from",
    )

    # Amounts
    rake_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    gross_commission: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    platform_cut_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    sdr_payout_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship("Deal")
    workspace: Mapped["Workspace"] = relationship("Workspace")
    sdr: Mapped["Profile"] = relationship("Profile")

    @property
    def total_due(self) -> Decimal:
        """Amount the agency owes: gross commission plus its rake."""
        return self.gross_commission + self.rake_amount

    def __repr__(self) -> str:
        return (
            f"<Commission(id={self.id}, deal_id={self.deal_id}, "
            f"gross={self.gross_commission}, status={self.status})>"
        )
