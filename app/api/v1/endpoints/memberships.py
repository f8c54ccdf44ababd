"""
Membership endpoints
"""

from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_membership_service
from app.core.database import get_session
from app.core.permissions import Permission
from app.core.security import require_permission
from app.models.user import User
from app.schemas.membership import (
    ExpireMembershipsResponse,
    MembershipExtendRequest,
    MembershipReasonRequest,
    MembershipResponse,
    MembershipStatusResponse,
)
from app.services.membership_service import MembershipService

router = APIRouter()

read_own = require_permission(Permission.MEMBERSHIPS_READ_OWN)
manage = require_permission(Permission.MEMBERSHIPS_MANAGE)


@router.get("/me", response_model=List[MembershipResponse])
async def list_my_memberships(
    current_user: User = Depends(read_own),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.get_user_memberships(db, current_user.id)


@router.get("/me/status", response_model=MembershipStatusResponse)
async def my_membership_status(
    current_user: User = Depends(read_own),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    summary = await memberships.get_membership_status(db, current_user.id)
    return MembershipStatusResponse(
        has_active_membership=summary.has_active_membership,
        membership=MembershipResponse.model_validate(summary.membership) if summary.membership else None,
        expires_at=summary.expires_at,
        days_remaining=summary.days_remaining,
    )


@router.get("/me/current", response_model=Optional[MembershipResponse])
async def my_current_membership(
    current_user: User = Depends(read_own),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.get_current_membership(db, current_user.id)


@router.get("/active", response_model=List[MembershipResponse])
async def list_active_memberships(
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.get_all_active_memberships(db)


@router.get("/expiring", response_model=List[MembershipResponse])
async def list_expiring_memberships(
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.get_expiring_memberships(db, days)


@router.post("/expire", response_model=ExpireMembershipsResponse)
async def expire_memberships(
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    """Run the expiry sweep on demand"""
    return ExpireMembershipsResponse(expired=await memberships.update_expired_memberships(db))


@router.get("/{membership_id}", response_model=MembershipResponse)
async def get_membership(
    membership_id: UUID,
    current_user: User = Depends(read_own),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.get_membership(db, membership_id, current_user.id)


@router.post("/{membership_id}/cancel", response_model=MembershipResponse)
async def cancel_membership(
    membership_id: UUID,
    request: MembershipReasonRequest = MembershipReasonRequest(),
    current_user: User = Depends(require_permission(Permission.MEMBERSHIPS_CANCEL_OWN)),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.cancel(db, membership_id, request.reason, user_id=current_user.id)


@router.post("/{membership_id}/suspend", response_model=MembershipResponse)
async def suspend_membership(
    membership_id: UUID,
    request: MembershipReasonRequest = MembershipReasonRequest(),
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.suspend(db, membership_id, request.reason)


@router.post("/{membership_id}/reactivate", response_model=MembershipResponse)
async def reactivate_membership(
    membership_id: UUID,
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.reactivate(db, membership_id)


@router.post("/{membership_id}/extend", response_model=MembershipResponse)
async def extend_membership(
    membership_id: UUID,
    request: MembershipExtendRequest,
    current_user: User = Depends(manage),
    db: AsyncSession = Depends(get_session),
    memberships: MembershipService = Depends(get_membership_service)
) -> Any:
    return await memberships.extend(db, membership_id, request.days)
