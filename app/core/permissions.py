"""
Role to permission mapping
"""

from types import MappingProxyType
import enum

from app.models.user import UserRole


class Permission(str, enum.Enum):
    SEATS_RESERVE = "seats:reserve"
    PAYMENTS_CREATE = "payments:create"
    MEMBERSHIPS_READ_OWN = "memberships:read_own"
    MEMBERSHIPS_CANCEL_OWN = "memberships:cancel_own"
    MEMBERSHIPS_MANAGE = "memberships:manage"
    EVENTS_MANAGE = "events:manage"


_MEMBER_PERMISSIONS = frozenset({
    Permission.SEATS_RESERVE,
    Permission.PAYMENTS_CREATE,
    Permission.MEMBERSHIPS_READ_OWN,
    Permission.MEMBERSHIPS_CANCEL_OWN,
})

ROLE_PERMISSIONS = MappingProxyType({
    UserRole.USER: _MEMBER_PERMISSIONS,
    UserRole.ORGANIZER: _MEMBER_PERMISSIONS | {Permission.EVENTS_MANAGE},
    UserRole.ADMIN: frozenset(Permission),
})


def has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(UserRole(role), frozenset())
