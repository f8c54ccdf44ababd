"""
Notification model
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Text, Uuid, JSON
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, UTCDateTime, enum_values


class NotificationType(str, enum.Enum):
    EMAIL = "email"
    PUSH = "push"


class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(BaseModel):
    """
    Outbox row picked up by the delivery worker
    """
    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(
        Enum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    data = Column(JSON, default=dict)
    status = Column(
        Enum(NotificationStatus, name="notification_status", values_callable=enum_values),
        default=NotificationStatus.PENDING,
        nullable=False,
        index=True
    )
    sent_at = Column(UTCDateTime)

    # Relationships
    user = relationship("User", back_populates="notifications")

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type}, status={self.status})>"
