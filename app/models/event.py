"""
Event model
"""

from sqlalchemy import Column, String, Text, Enum
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, UTCDateTime, enum_values


class EventStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(BaseModel):
    """
    Event with a fixed seat map created alongside it
    """
    __tablename__ = "events"

    title = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text)
    venue_name = Column(String(255))
    city = Column(String(100))
    country = Column(String(100))
    starts_at = Column(UTCDateTime, index=True)
    timezone = Column(String(64), default="Europe/London", nullable=False)
    status = Column(
        Enum(EventStatus, name="event_status", values_callable=enum_values),
        default=EventStatus.UPCOMING,
        nullable=False,
        index=True
    )

    # Relationships
    seats = relationship(
        "Seat",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="[Seat.map_position, Seat.seat_number]"
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, status={self.status})>"
