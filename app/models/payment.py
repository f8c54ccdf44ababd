"""
Payment model for membership purchases
"""

from sqlalchemy import Column, String, Numeric, Enum, ForeignKey, Uuid, JSON
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, UTCDateTime, enum_values


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PAYMENT_STATUSES


TERMINAL_PAYMENT_STATUSES = frozenset({
    PaymentStatus.SUCCEEDED,
    PaymentStatus.FAILED,
    PaymentStatus.CANCELED,
    PaymentStatus.REFUNDED,
})


class Payment(BaseModel):
    """
    Payment model tracking one processor payment intent
    """
    __tablename__ = "payments"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(Uuid(as_uuid=True), ForeignKey("plans.id"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP", nullable=False)
    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True
    )

    # Processor handles
    external_intent_id = Column(String(255), unique=True, nullable=False)
    external_client_secret = Column(String(255), nullable=False)
    external_charge_id = Column(String(255))

    failure_reason = Column(String(500))
    payment_metadata = Column("metadata", JSON, default=dict)

    # Timestamps, each written once by its terminal transition
    paid_at = Column(UTCDateTime)
    failed_at = Column(UTCDateTime)
    canceled_at = Column(UTCDateTime)
    refunded_at = Column(UTCDateTime)

    # Relationships
    user = relationship("User", back_populates="payments")
    plan = relationship("Plan", back_populates="payments")
    membership = relationship("Membership", back_populates="payment", uselist=False)

    def __repr__(self):
        # external_client_secret is deliberately left out
        return f"<Payment(id={self.id}, user_id={self.user_id}, amount={self.amount}, status={self.status})>"
