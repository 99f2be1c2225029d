"""
Dispute model for contested deals.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.profile import Profile


class DisputeStatus(str, Enum):
    """Lifecycle of a dispute. Only a platform admin resolves one."""
    OPEN = "open"
    APPROVED = "approved"
    REJECTED = "rejected"


class Dispute(BaseModel):
    """A dispute raised on a deal, usually by the SDR who worked it."""

    __tablename__ = "disputes"

    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id"),
        nullable=False,
        index=True,
    )
    deal_id: Mapped[int] = mapped_column(
        ForeignKey("deals.id"),
        nullable=False,
        index=True,
    )
    raised_by: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
    )
    reason: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    status: Mapped[DisputeStatus] = mapped_column(
        SQLAlchemyEnum(
            DisputeStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=DisputeStatus.OPEN,
        nullable=False,
        index=True,
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    deal: Mapped["Deal"] = relationship("Deal")
    raiser: Mapped["Profile"] = relationship("Profile")

    def __repr__(self) -> str:
        return f"<Dispute(id={self.id}, deal_id={self.deal_id}, status={self.status})>"
