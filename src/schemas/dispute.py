"""Dispute schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.dispute import DisputeStatus


class DisputeCreateRequest(BaseModel):
    deal_id: int
    raised_by: int
    reason: str = Field(..., min_length=1, max_length=2000)


class DisputeResolveRequest(BaseModel):
    resolution: str = Field(..., pattern="^(approved|rejected)$")
    admin_notes: Optional[str] = Field(None, max_length=2000)


class DisputeResponse(BaseModel):
    id: int
    workspace_id: int
    deal_id: int
    raised_by: int
    reason: str
    status: DisputeStatus
    admin_notes: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
