"""
Workspace model: an agency's tenant.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.deal import Deal
    from src.models.profile import Profile


class Workspace(BaseModel):
    """
    An agency workspace.

    rake_percentage is read at the moment a deal closes and copied onto the
    commission, so changing it later never touches existing commissions.
    A NULL rake means the configured default applies.
    """

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    rake_percentage: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2),
        nullable=True,
        comment="Agency rake as a percentage of deal value",
    )
    subscription_status: Mapped[str] = mapped_column(
        String(50),
        default="inactive",
        server_default="inactive",
        nullable=False,
    )
    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
        comment="Set while commissions are overdue",
    )

    # Relationships
    owner: Mapped["Profile"] = relationship(
        "Profile",
        back_populates="owned_workspaces",
    )
    deals: Mapped[List["Deal"]] = relationship(
        "Deal",
        back_populates="workspace",
    )

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name='{self.name}', locked={self.is_locked})>"
