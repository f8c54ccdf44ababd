"""
User model
"""

from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, enum_values


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    ORGANIZER = "organizer"


class User(BaseModel):
    """
    User model; only the fields the membership and seating flows read
    """
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Cached payment processor customer handle, created on first purchase
    stripe_customer_id = Column(String(255), unique=True)

    # Relationships
    payments = relationship("Payment", back_populates="user")
    memberships = relationship("Membership", back_populates="user")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
