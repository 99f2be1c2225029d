"""Pydantic schemas for request/response validation."""

from src.schemas.commission import (
    CommissionListResponse,
    CommissionOutcomeResponse,
    CommissionPreviewResponse,
    CommissionResponse,
)
from src.schemas.deal import DealResponse, DealStageUpdateRequest, DealStageUpdateResponse
from src.schemas.dispute import DisputeCreateRequest, DisputeResolveRequest, DisputeResponse
from src.schemas.level import SDRLevelResponse
from src.schemas.notification import NotificationListResponse, NotificationResponse

__all__ = [
    # Commission
    "CommissionPreviewResponse",
    "CommissionResponse",
    "CommissionListResponse",
    "CommissionOutcomeResponse",
    # Deal
    "DealResponse",
    "DealStageUpdateRequest",
    "DealStageUpdateResponse",
    # Level
    "SDRLevelResponse",
    # Notification
    "NotificationResponse",
    "NotificationListResponse",
    # Dispute
    "DisputeCreateRequest",
    "DisputeResolveRequest",
    "DisputeResponse",
]
