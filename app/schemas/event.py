"""
Event schemas
"""

from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.schemas.seat import SeatSummary
from app.models.event import EventStatus


class SeatMapEntry(BaseSchema):
    seat_number: str = Field(..., min_length=1, max_length=20)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class EventCreate(BaseSchema):
    """Event creation schema; the seat map is fixed at creation"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    venue_name: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    starts_at: Optional[datetime] = None
    timezone: str = "Europe/London"
    seats: List[SeatMapEntry] = Field(..., min_length=1)

    @field_validator("seats")
    @classmethod
    def unique_seat_numbers(cls, v: List[SeatMapEntry]) -> List[SeatMapEntry]:
        numbers = [seat.seat_number for seat in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Seat numbers must be unique within an event")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Summer Gala",
                "venue_name": "Royal Festival Hall",
                "city": "London",
                "country": "GB",
                "starts_at": "2025-07-12T19:30:00Z",
                "seats": [
                    {"seat_number": "A1", "price": "100.00"},
                    {"seat_number": "A2", "price": "100.00"}
                ]
            }
        }
    }


class EventResponse(IDSchema, TimestampSchema):
    title: str
    description: Optional[str] = None
    venue_name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    starts_at: Optional[datetime] = None
    timezone: str
    status: EventStatus


class EventDetailResponse(EventResponse):
    seats: List[SeatSummary] = []
