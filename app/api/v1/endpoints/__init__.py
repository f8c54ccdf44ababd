"""
API endpoints module
"""

from . import events, seats, payments, memberships, health

__all__ = [
    "events",
    "seats",
    "payments",
    "memberships",
    "health",
]
