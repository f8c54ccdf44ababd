"""
Membership lifecycle service

    (none) --payment succeeded--> active
    active --cancel--> cancelled
    active --suspend--> suspended --reactivate--> active
    active --extend(days)--> active
    active --end_date passed--> expired

Transitions are conditional UPDATEs on the expected current status.
"""

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.metrics import record_membership_transition
from app.models.base import utcnow
from app.models.membership import Membership, MembershipStatus
from app.models.payment import Payment
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


def add_calendar_days(moment: datetime, days: int, timezone_name: str) -> datetime:
    """
    Move ``moment`` forward by whole calendar days in ``timezone_name``

    The local wall-clock time is kept across DST changes, so the UTC offset of
    the result may differ from the input.
    """
    zone = ZoneInfo(timezone_name)
    local = moment.astimezone(zone)
    shifted = local.replace(tzinfo=None) + timedelta(days=days)
    return shifted.replace(tzinfo=zone).astimezone(timezone.utc)


def days_until(end: datetime, now: datetime) -> int:
    """Whole days left, rounded up, never negative"""
    remaining = (end - now).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining / 86400)


@dataclass
class MembershipStatusSummary:
    has_active_membership: bool
    membership: Optional[Membership] = None
    expires_at: Optional[datetime] = None
    days_remaining: int = 0


class MembershipService:
    """Service for membership lifecycle operations"""

    def __init__(
        self,
        term_days: Optional[int] = None,
        timezone_name: Optional[str] = None,
        notifier: Optional[NotificationDispatcher] = None,
    ):
        self.term = timedelta(days=term_days or settings.MEMBERSHIP_TERM_DAYS)
        self.timezone_name = timezone_name or settings.MEMBERSHIP_TIMEZONE
        self.notifier = notifier

    async def create(self, db: AsyncSession, payment: Payment, now: Optional[datetime] = None) -> Membership:
        """
        Add the membership funded by ``payment`` to the caller's transaction

        Only reconciliation calls this; it owns the commit.
        """
        start = now or utcnow()
        membership = Membership(
            user_id=payment.user_id,
            plan_id=payment.plan_id,
            payment_id=payment.id,
            status=MembershipStatus.ACTIVE,
            start_date=start,
            end_date=start + self.term,
            auto_renew=False,
        )
        db.add(membership)
        await db.flush()
        return membership

    async def expire_lapsed_for_user(self, db: AsyncSession, user_id: uuid.UUID, now: datetime) -> int:
        """Expire the user's active memberships that have run out, without committing"""
        result = await db.execute(
            update(Membership)
            .where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE,
                Membership.end_date <= now,
            )
            .values(status=MembershipStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_membership(
        self,
        db: AsyncSession,
        membership_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None
    ) -> Membership:
        query = select(Membership).where(Membership.id == membership_id)
        if user_id is not None:
            query = query.where(Membership.user_id == user_id)
        result = await db.execute(query.execution_options(populate_existing=True))
        membership = result.scalar_one_or_none()
        if membership is None:
            raise NotFoundError("Membership", membership_id)
        return membership

    async def get_by_payment(self, db: AsyncSession, payment_id: uuid.UUID) -> Optional[Membership]:
        result = await db.execute(
            select(Membership)
            .where(Membership.payment_id == payment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_current_membership(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[Membership]:
        """The user's active membership, if it has not run out yet"""
        result = await db.execute(
            select(Membership)
            .where(
                Membership.user_id == user_id,
                Membership.status == MembershipStatus.ACTIVE,
                Membership.end_date > utcnow(),
            )
            .order_by(Membership.end_date.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def has_active_membership(self, db: AsyncSession, user_id: uuid.UUID) -> bool:
        return await self.get_current_membership(db, user_id) is not None

    async def get_user_memberships(self, db: AsyncSession, user_id: uuid.UUID) -> List[Membership]:
        result = await db.execute(
            select(Membership)
            .where(Membership.user_id == user_id)
            .order_by(Membership.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_membership_status(self, db: AsyncSession, user_id: uuid.UUID) -> MembershipStatusSummary:
        membership = await self.get_current_membership(db, user_id)
        if membership is None:
            return MembershipStatusSummary(has_active_membership=False)

        return MembershipStatusSummary(
            has_active_membership=True,
            membership=membership,
            expires_at=membership.end_date,
            days_remaining=days_until(membership.end_date, utcnow()),
        )

    async def get_all_active_memberships(self, db: AsyncSession) -> List[Membership]:
        result = await db.execute(
            select(Membership)
            .where(Membership.status == MembershipStatus.ACTIVE)
            .order_by(Membership.end_date)
        )
        return list(result.scalars().all())

    async def get_expiring_memberships(self, db: AsyncSession, days: Optional[int] = None) -> List[Membership]:
        """Active memberships ending within the next ``days`` days"""
        if days is None:
            days = settings.MEMBERSHIP_EXPIRY_WARNING_DAYS
        if days < 0:
            raise ValidationError("days must not be negative", field="days")

        now = utcnow()
        result = await db.execute(
            select(Membership)
            .where(
                Membership.status == MembershipStatus.ACTIVE,
                Membership.end_date > now,
                Membership.end_date <= now + timedelta(days=days),
            )
            .order_by(Membership.end_date)
        )
        return list(result.scalars().all())

    async def cancel(
        self,
        db: AsyncSession,
        membership_id: uuid.UUID,
        reason: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None
    ) -> Membership:
        membership = await self._transition(
            db,
            membership_id,
            expected=MembershipStatus.ACTIVE,
            values={
                "status": MembershipStatus.CANCELLED,
                "cancelled_at": utcnow(),
                "cancellation_reason": reason,
            },
            user_id=user_id,
        )
        await self._notify(membership, "Membership cancelled", "Your membership has been cancelled.")
        return membership

    async def suspend(self, db: AsyncSession, membership_id: uuid.UUID, reason: Optional[str] = None) -> Membership:
        membership = await self._transition(
            db,
            membership_id,
            expected=MembershipStatus.ACTIVE,
            values={
                "status": MembershipStatus.SUSPENDED,
                "suspended_at": utcnow(),
                "suspension_reason": reason,
            },
        )
        await self._notify(membership, "Membership suspended", "Your membership has been suspended.")
        return membership

    async def reactivate(self, db: AsyncSession, membership_id: uuid.UUID) -> Membership:
        try:
            membership = await self._transition(
                db,
                membership_id,
                expected=MembershipStatus.SUSPENDED,
                values={
                    "status": MembershipStatus.ACTIVE,
                    "suspended_at": None,
                    "suspension_reason": None,
                    "reactivated_at": utcnow(),
                },
            )
        except IntegrityError:
            await db.rollback()
            raise ConflictError(
                "User already has an active membership",
                details={"membership_id": str(membership_id)}
            )
        await self._notify(membership, "Membership reactivated", "Your membership is active again.")
        return membership

    async def extend(self, db: AsyncSession, membership_id: uuid.UUID, days: int) -> Membership:
        """
        Push the end date out by ``days`` calendar days in the membership time zone
        """
        if days <= 0:
            raise ValidationError("days must be a positive integer", field="days")

        membership = await self.get_membership(db, membership_id)
        if membership.status != MembershipStatus.ACTIVE:
            raise ConflictError(
                f"Cannot extend a {membership.status.value} membership",
                details={"status": membership.status.value}
            )

        current_end = membership.end_date
        new_end = add_calendar_days(current_end, days, self.timezone_name)
        membership = await self._transition(
            db,
            membership_id,
            expected=MembershipStatus.ACTIVE,
            values={"end_date": new_end},
            guard=(Membership.end_date == current_end,),
            metric_status="extended",
        )
        logger.info(f"Membership {membership_id} extended by {days} days to {new_end.isoformat()}")
        return membership

    async def update_expired_memberships(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Expire every active membership whose end date has passed

        Returns the number of memberships expired. Safe to run repeatedly.
        """
        now = now or utcnow()
        result = await db.execute(
            update(Membership)
            .where(
                Membership.status == MembershipStatus.ACTIVE,
                Membership.end_date < now,
            )
            .values(status=MembershipStatus.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        expired = result.rowcount
        await db.commit()

        record_membership_transition(MembershipStatus.EXPIRED.value, expired)
        logger.info(f"Expired {expired} memberships")
        return expired

    async def _transition(
        self,
        db: AsyncSession,
        membership_id: uuid.UUID,
        expected: MembershipStatus,
        values: dict,
        user_id: Optional[uuid.UUID] = None,
        guard: tuple = (),
        metric_status: Optional[str] = None,
    ) -> Membership:
        conditions = [Membership.id == membership_id, Membership.status == expected, *guard]
        if user_id is not None:
            conditions.append(Membership.user_id == user_id)

        result = await db.execute(
            update(Membership)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await db.commit()  # zero rows matched, nothing to undo
            membership = await self.get_membership(db, membership_id, user_id)
            if membership.status == expected:
                raise ConflictError("Membership was modified concurrently, retry")
            raise ConflictError(
                f"Membership is {membership.status.value}, expected {expected.value}",
                details={"status": membership.status.value}
            )

        await db.commit()
        membership = await self.get_membership(db, membership_id)
        status = metric_status or membership.status.value
        record_membership_transition(status)
        logger.info(f"Membership {membership_id}: {expected.value} -> {status}")
        return membership

    async def _notify(self, membership: Membership, title: str, content: str) -> None:
        if self.notifier is None:
            return
        await self.notifier.notify(
            membership.user_id,
            title=title,
            content=content,
            data={"membership_id": membership.id, "status": membership.status.value},
        )
