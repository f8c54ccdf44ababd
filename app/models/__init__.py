"""
Database models
"""

from app.models.user import User
from app.models.plan import Plan
from app.models.event import Event
from app.models.seat import Seat
from app.models.payment import Payment
from app.models.membership import Membership
from app.models.notification import Notification

__all__ = [
    "User",
    "Plan",
    "Event",
    "Seat",
    "Payment",
    "Membership",
    "Notification"
]
