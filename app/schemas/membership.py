"""
Membership schemas
"""

from typing import Optional
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.membership import MembershipStatus


class MembershipResponse(IDSchema, TimestampSchema):
    user_id: UUID
    plan_id: UUID
    payment_id: UUID
    status: MembershipStatus
    start_date: datetime
    end_date: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    suspended_at: Optional[datetime] = None
    suspension_reason: Optional[str] = None
    reactivated_at: Optional[datetime] = None
    auto_renew: bool = False


class MembershipStatusResponse(BaseSchema):
    has_active_membership: bool
    membership: Optional[MembershipResponse] = None
    expires_at: Optional[datetime] = None
    days_remaining: int = 0


class MembershipReasonRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class MembershipExtendRequest(BaseModel):
    days: int = Field(..., gt=0, le=3650)


class ExpireMembershipsResponse(BaseModel):
    expired: int
