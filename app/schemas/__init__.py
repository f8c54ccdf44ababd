"""
Pydantic schemas for request and response validation
"""

from app.schemas.event import (
    EventCreate,
    EventResponse,
    EventDetailResponse
)
from app.schemas.seat import SeatResponse
from app.schemas.payment import (
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentResponse,
    PaymentConfirmResponse
)
from app.schemas.membership import (
    MembershipResponse,
    MembershipStatusResponse,
    MembershipReasonRequest,
    MembershipExtendRequest,
    ExpireMembershipsResponse
)
from app.schemas.response import (
    ErrorResponse,
    HealthResponse,
    WebhookAck
)

__all__ = [
    "EventCreate",
    "EventResponse",
    "EventDetailResponse",
    "SeatResponse",
    "PaymentIntentCreate",
    "PaymentIntentResponse",
    "PaymentResponse",
    "PaymentConfirmResponse",
    "MembershipResponse",
    "MembershipStatusResponse",
    "MembershipReasonRequest",
    "MembershipExtendRequest",
    "ExpireMembershipsResponse",
    "ErrorResponse",
    "HealthResponse",
    "WebhookAck",
]
