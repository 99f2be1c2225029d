"""
Profile model for marketplace users and SDR level tracking.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.workspace import Workspace


class ProfileRole(str, Enum):
    """Marketplace roles."""
    AGENCY_OWNER = "agency_owner"
    SDR = "sdr"
    PLATFORM_ADMIN = "platform_admin"


class Profile(BaseModel):
    """
    A marketplace user.

    For SDRs the profile also carries the aggregate used by the level engine:
    - sdr_level: 1, 2 or 3, only ever raised
    - total_deals_closed_value: running sum of won deal values, never decremented
    """

    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("sdr_level BETWEEN 1 AND 3", name="profiles_sdr_level_range"),
        CheckConstraint(
            "total_deals_closed_value >= 0",
            name="profiles_total_closed_non_negative",
        ),
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    role: Mapped[ProfileRole] = mapped_column(
        SQLAlchemyEnum(
            ProfileRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ProfileRole.SDR,
        nullable=False,
        index=True,
    )

    # Level tracking (SDR only)
    sdr_level: Mapped[int] = mapped_column(
        Integer,
        default=1,
        server_default="1",
        nullable=False,
    )
    total_deals_closed_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
        comment="Sum of closed_won deal values credited to this SDR",
    )

    # Relationships
    owned_workspaces: Mapped[List["Workspace"]] = relationship(
        "Workspace",
        back_populates="owner",
    )
    assigned_deals: Mapped[List["Deal"]] = relationship(
        "Deal",
        back_populates="assignee",
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role={self.role})>"
