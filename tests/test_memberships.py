"""
Membership lifecycle tests
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.membership import Membership, MembershipStatus
from app.models.payment import Payment, PaymentStatus
from app.services.membership_service import add_calendar_days, days_until


async def _membership(db_session, user, plan, start=None, end=None, status=MembershipStatus.ACTIVE):
    start = start or utcnow()
    payment = Payment(
        user_id=user.id,
        plan_id=plan.id,
        amount=plan.price,
        currency=plan.currency,
        status=PaymentStatus.SUCCEEDED,
        external_intent_id=f"pi_{uuid4().hex[:12]}",
        external_client_secret="secret",
        paid_at=start,
    )
    db_session.add(payment)
    await db_session.flush()
    membership = Membership(
        user_id=user.id,
        plan_id=plan.id,
        payment_id=payment.id,
        status=status,
        start_date=start,
        end_date=end or start + timedelta(days=365),
    )
    db_session.add(membership)
    await db_session.commit()
    return membership


@pytest.mark.unit
class TestCalendarArithmetic:

    def test_thirty_days_from_new_year(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert add_calendar_days(start, 30, "Europe/London") == datetime(2025, 1, 31, tzinfo=timezone.utc)

    def test_extensions_are_cumulative(self):
        start = datetime(2025, 1, 1, tzinfo=timezone.utc)
        once = add_calendar_days(start, 30, "Europe/London")
        assert add_calendar_days(once, 30, "Europe/London") == datetime(2025, 3, 2, tzinfo=timezone.utc)

    def test_local_time_kept_across_dst_start(self):
        # 12:00 GMT on 20 March is 12:00 BST (11:00 UTC) ten days later
        start = datetime(2025, 3, 20, 12, 0, tzinfo=timezone.utc)
        assert add_calendar_days(start, 10, "Europe/London") == datetime(2025, 3, 30, 11, 0, tzinfo=timezone.utc)

    def test_days_remaining_rounds_up(self):
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert days_until(now + timedelta(days=3.4), now) == 4

    def test_days_remaining_floored_at_zero(self):
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert days_until(now - timedelta(hours=1), now) == 0


@pytest.mark.unit
@pytest.mark.asyncio
class TestMembershipTransitions:
    """cancel / suspend / reactivate / extend"""

    async def test_cancel_active(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)

        cancelled = await membership_service.cancel(db_session, membership.id, "Moving abroad")

        assert cancelled.status == MembershipStatus.CANCELLED
        assert cancelled.cancelled_at is not None
        assert cancelled.cancellation_reason == "Moving abroad"

    async def test_cancel_is_terminal(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)
        await membership_service.cancel(db_session, membership.id)

        with pytest.raises(ConflictError):
            await membership_service.cancel(db_session, membership.id)
        with pytest.raises(ConflictError):
            await membership_service.suspend(db_session, membership.id)

    async def test_cancel_someone_elses_membership(self, db_session, membership_service, test_user, other_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)

        with pytest.raises(NotFoundError):
            await membership_service.cancel(db_session, membership.id, user_id=other_user.id)

    async def test_suspend_and_reactivate(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)

        suspended = await membership_service.suspend(db_session, membership.id, "Chargeback")
        assert suspended.status == MembershipStatus.SUSPENDED
        assert suspended.suspension_reason == "Chargeback"
        assert suspended.suspended_at is not None

        reactivated = await membership_service.reactivate(db_session, membership.id)
        assert reactivated.status == MembershipStatus.ACTIVE
        assert reactivated.suspended_at is None
        assert reactivated.suspension_reason is None
        assert reactivated.reactivated_at is not None

    async def test_reactivate_requires_suspended(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)

        with pytest.raises(ConflictError):
            await membership_service.reactivate(db_session, membership.id)

    async def test_reactivate_blocked_by_other_active_membership(
        self, db_session, membership_service, test_user, vip_plan
    ):
        first = await _membership(db_session, test_user, vip_plan)
        await membership_service.suspend(db_session, first.id)
        await _membership(db_session, test_user, vip_plan)

        with pytest.raises(ConflictError):
            await membership_service.reactivate(db_session, first.id)

    async def test_extend_uses_calendar_days(self, db_session, membership_service, test_user, vip_plan):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        membership = await _membership(
            db_session, test_user, vip_plan, start=start, end=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )

        extended = await membership_service.extend(db_session, membership.id, 30)
        assert extended.end_date == datetime(2025, 1, 31, tzinfo=timezone.utc)

        extended = await membership_service.extend(db_session, membership.id, 30)
        assert extended.end_date == datetime(2025, 3, 2, tzinfo=timezone.utc)

    async def test_extend_rejects_non_positive_days(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)

        with pytest.raises(ValidationError):
            await membership_service.extend(db_session, membership.id, 0)

    async def test_extend_requires_active(self, db_session, membership_service, test_user, vip_plan):
        membership = await _membership(db_session, test_user, vip_plan)
        await membership_service.suspend(db_session, membership.id)

        with pytest.raises(ConflictError):
            await membership_service.extend(db_session, membership.id, 10)

    async def test_unknown_membership(self, db_session, membership_service):
        with pytest.raises(NotFoundError):
            await membership_service.suspend(db_session, uuid4())


@pytest.mark.unit
@pytest.mark.asyncio
class TestMembershipQueries:
    """Status, listings and the expiry sweep"""

    async def test_status_with_active_membership(self, db_session, membership_service, test_user, vip_plan):
        now = utcnow()
        membership = await _membership(
            db_session, test_user, vip_plan, start=now - timedelta(days=300), end=now + timedelta(days=3.4)
        )

        summary = await membership_service.get_membership_status(db_session, test_user.id)

        assert summary.has_active_membership is True
        assert summary.membership.id == membership.id
        assert summary.expires_at == membership.end_date
        assert summary.days_remaining == 4

    async def test_status_without_membership(self, db_session, membership_service, test_user):
        summary = await membership_service.get_membership_status(db_session, test_user.id)

        assert summary.has_active_membership is False
        assert summary.membership is None
        assert summary.days_remaining == 0

    async def test_lapsed_active_row_is_not_current(self, db_session, membership_service, test_user, vip_plan):
        now = utcnow()
        await _membership(db_session, test_user, vip_plan, start=now - timedelta(days=400), end=now - timedelta(days=35))

        assert await membership_service.get_current_membership(db_session, test_user.id) is None
        assert await membership_service.has_active_membership(db_session, test_user.id) is False

    async def test_update_expired_memberships(self, db_session, membership_service, test_user, other_user, vip_plan):
        now = utcnow()
        lapsed = await _membership(db_session, test_user, vip_plan, start=now - timedelta(days=366), end=now - timedelta(days=1))
        live = await _membership(db_session, other_user, vip_plan)

        assert await membership_service.update_expired_memberships(db_session) == 1
        assert await membership_service.update_expired_memberships(db_session) == 0

        statuses = dict((await db_session.execute(
            select(Membership.id, Membership.status)
        )).all())
        assert statuses[lapsed.id] == MembershipStatus.EXPIRED
        assert statuses[live.id] == MembershipStatus.ACTIVE

    async def test_expiring_memberships_window(self, db_session, membership_service, test_user, other_user, test_admin, vip_plan):
        now = utcnow()
        soon = await _membership(db_session, test_user, vip_plan, start=now - timedelta(days=360), end=now + timedelta(days=5))
        await _membership(db_session, other_user, vip_plan, start=now, end=now + timedelta(days=20))
        await _membership(db_session, test_admin, vip_plan, start=now - timedelta(days=400), end=now - timedelta(days=1))

        expiring = await membership_service.get_expiring_memberships(db_session)
        assert [m.id for m in expiring] == [soon.id]

        assert len(await membership_service.get_expiring_memberships(db_session, days=30)) == 2

    async def test_all_active_and_user_history(self, db_session, membership_service, test_user, other_user, vip_plan):
        first = await _membership(db_session, test_user, vip_plan)
        await membership_service.cancel(db_session, first.id)
        await _membership(db_session, test_user, vip_plan)
        await _membership(db_session, other_user, vip_plan)

        active = await membership_service.get_all_active_memberships(db_session)
        history = await membership_service.get_user_memberships(db_session, test_user.id)

        assert len(active) == 2
        assert len(history) == 2
        assert {m.status for m in history} == {MembershipStatus.ACTIVE, MembershipStatus.CANCELLED}
