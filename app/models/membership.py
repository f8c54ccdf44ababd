"""
Membership model
"""

from sqlalchemy import Column, String, Boolean, Enum, ForeignKey, Uuid, Index, text
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, UTCDateTime, enum_values


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class Membership(BaseModel):
    """
    Entitlement granted by exactly one successful payment
    """
    __tablename__ = "memberships"
    __table_args__ = (
        # At most one active membership per user
        Index(
            "uq_membership_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_memberships_status_end_date", "status", "end_date"),
    )

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Uuid(as_uuid=True), ForeignKey("plans.id"), nullable=False)
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id"), nullable=False, unique=True)
    status = Column(
        Enum(MembershipStatus, name="membership_status", values_callable=enum_values),
        default=MembershipStatus.ACTIVE,
        nullable=False
    )
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime, nullable=False)

    cancelled_at = Column(UTCDateTime)
    cancellation_reason = Column(String(500))
    suspended_at = Column(UTCDateTime)
    suspension_reason = Column(String(500))
    reactivated_at = Column(UTCDateTime)

    auto_renew = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="memberships")
    plan = relationship("Plan", back_populates="memberships")
    payment = relationship("Payment", back_populates="membership")

    def __repr__(self):
        return f"<Membership(id={self.id}, user_id={self.user_id}, status={self.status}, end_date={self.end_date})>"
