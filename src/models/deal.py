"""
Deal model for the CRM pipeline.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.profile import Profile
    from src.models.workspace import Workspace


class DealStage(str, Enum):
    """Pipeline stage of a deal."""
    NEW = "new"
    CONTACTED = "contacted"
    DISCOVERY = "discovery"
    MEETING = "meeting"
    PROPOSAL = "proposal"
    CLOSED_WON = "closed_won"      # Only stage that produces a commission
    CLOSED_LOST = "closed_lost"


TERMINAL_STAGES = frozenset({DealStage.CLOSED_WON, DealStage.CLOSED_LOST})


class Deal(BaseModel):
    """
    A sales opportunity inside a workspace.

    Created when a lead converts or manually. The stage is moved by the SDR
    or the agency owner through the pipeline; reaching CLOSED_WON triggers
    commission creation.
    """

    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint("value >= 0", name="deals_value_non_negative"),
    )

    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id"),
        nullable=False,
        index=True,
    )
    assigned_to: Mapped[Optional[int]] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )
    stage: Mapped[DealStage] = mapped_column(
        SQLAlchemyEnum(
            DealStage,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DealStage.NEW,
        nullable=False,
        index=True,
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="deals",
    )
    assignee: Mapped[Optional["Profile"]] = relationship(
        "Profile",
        back_populates="assigned_deals",
    )

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title}', stage={self.stage})>"
