"""
Payment schemas for request/response models
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.schemas.membership import MembershipResponse
from app.models.payment import PaymentStatus


class PaymentIntentCreate(BaseModel):
    plan_id: UUID


class PaymentIntentResponse(BaseSchema):
    payment_id: UUID
    client_secret: str
    amount: Decimal
    currency: str


class PaymentResponse(IDSchema, TimestampSchema):
    """Stored payment; the client secret is only ever returned at creation"""
    user_id: UUID
    plan_id: UUID
    amount: Decimal
    currency: str
    status: PaymentStatus
    external_intent_id: str
    external_charge_id: Optional[str] = None
    failure_reason: Optional[str] = None
    paid_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None


class PaymentConfirmResponse(BaseSchema):
    payment: PaymentResponse
    membership: Optional[MembershipResponse] = None
    changed: bool = False
