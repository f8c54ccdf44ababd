"""
Seat model
"""

from sqlalchemy import (
    CheckConstraint, Column, Integer, String, ForeignKey, Enum, Numeric, UniqueConstraint, Uuid, Index
)
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, UTCDateTime, enum_values


class SeatStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    BOOKED = "booked"


class Seat(BaseModel):
    """
    Seat in an event's fixed seat map

    holder_id and hold_expiry follow the status: both empty while available,
    both set while reserved, holder only once booked.
    """
    __tablename__ = "seats"
    __table_args__ = (
        UniqueConstraint("event_id", "seat_number", name="uq_event_seat_number"),
        CheckConstraint(
            "(status = 'available' AND holder_id IS NULL AND hold_expiry IS NULL)"
            " OR (status = 'reserved' AND holder_id IS NOT NULL AND hold_expiry IS NOT NULL)"
            " OR (status = 'booked' AND holder_id IS NOT NULL AND hold_expiry IS NULL)",
            name="ck_seat_hold_consistency",
        ),
        Index("ix_seats_event_status", "event_id", "status"),
    )

    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_number = Column(String(20), nullable=False)
    # Index in the seat map as supplied when the event was created
    map_position = Column(Integer, default=0, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(SeatStatus, name="seat_status", values_callable=enum_values),
        default=SeatStatus.AVAILABLE,
        nullable=False
    )
    holder_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    hold_expiry = Column(UTCDateTime, nullable=True)

    # Relationships
    event = relationship("Event", back_populates="seats")

    def __repr__(self):
        return f"<Seat(event_id={self.event_id}, seat={self.seat_number}, status={self.status})>"
