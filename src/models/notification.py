"""
Notification model for in-app messages.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text, false
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel


class NotificationType(str, Enum):
    """Kinds of notifications raised by the service."""
    COMMISSION_CREATED = "commission_created"
    COMMISSION_PAID = "commission_paid"
    LEVEL_UP = "level_up"
    DISPUTE_CREATED = "dispute_created"
    DISPUTE_RESOLVED = "dispute_resolved"
    ACCOUNT_LOCKED = "account_locked"


class Notification(BaseModel):
    """
    A one-way message to a user.

    Written fire-and-forget after the operation that caused it has been
    committed. Only the read flag changes afterwards.
    """

    __tablename__ = "notifications"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("workspaces.id"),
        nullable=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        SQLAlchemyEnum(
            NotificationType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    data: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Structured payload for the client",
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type})>"
