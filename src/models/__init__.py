"""
Database models.

All models are exported here for convenient imports:
    from src.models import Deal, Commission, Profile, etc.
"""

from src.models.base import Base, BaseModel
from src.models.commission import Commission, CommissionStatus, OUTSTANDING_STATUSES
from src.models.deal import Deal, DealStage, TERMINAL_STAGES
from src.models.dispute import Dispute, DisputeStatus
from src.models.notification import Notification, NotificationType
from src.models.profile import Profile, ProfileRole
from src.models.workspace import Workspace

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Profile
    "Profile",
    "ProfileRole",
    # Workspace
    "Workspace",
    # Deal
    "Deal",
    "DealStage",
    "TERMINAL_STAGES",
    # Commission
    "Commission",
    "CommissionStatus",
    "OUTSTANDING_STATUSES",
    # Notification
    "Notification",
    "NotificationType",
    # Dispute
    "Dispute",
    "DisputeStatus",
]
