"""
Seat schemas
"""

from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from app.schemas.base import BaseSchema, IDSchema
from app.models.seat import SeatStatus


class SeatResponse(IDSchema):
    event_id: UUID
    seat_number: str
    price: Decimal
    status: SeatStatus
    holder_id: Optional[UUID] = None
    hold_expiry: Optional[datetime] = None


class SeatSummary(BaseSchema):
    """Seat as shown inside an event listing"""
    seat_number: str
    price: Decimal
    status: SeatStatus
