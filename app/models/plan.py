"""
Membership plan model
"""

from sqlalchemy import Column, String, Text, Boolean, Numeric, Enum, JSON
from sqlalchemy.orm import relationship
import enum

from app.models.base import BaseModel, enum_values


class PlanType(str, enum.Enum):
    DIGITAL_MEMBER = "DIGITAL_MEMBER"
    PHYSICAL_MEMBER = "PHYSICAL_MEMBER"
    VIP_MEMBER = "VIP_MEMBER"


class Plan(BaseModel):
    """
    Purchasable membership plan
    """
    __tablename__ = "plans"

    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    features = Column(JSON, nullable=False, default=list)
    plan_type = Column(
        Enum(PlanType, name="plan_type", values_callable=enum_values),
        unique=True,
        nullable=True
    )
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), default="GBP", nullable=False)
    stripe_product_id = Column(String(255))
    stripe_price_id = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    payments = relationship("Payment", back_populates="plan")
    memberships = relationship("Membership", back_populates="plan")

    def __repr__(self):
        return f"<Plan(id={self.id}, name={self.name}, price={self.price} {self.currency})>"
