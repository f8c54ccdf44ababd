"""
Notification outbox tests
"""

from uuid import uuid4

import pytest
from sqlalchemy import select

from app.models.notification import Notification, NotificationStatus, NotificationType
from app.services.notification_service import NotificationDispatcher


class BrokenSessionFactory:
    def __call__(self):
        raise RuntimeError("database unavailable")


@pytest.mark.unit
@pytest.mark.asyncio
class TestNotificationDispatcher:

    async def test_enqueues_pending_row(self, notifier, session_maker, test_user):
        membership_id = uuid4()

        notification = await notifier.notify(
            test_user.id,
            title="Membership activated",
            content="Welcome aboard",
            data={"membership_id": membership_id},
        )

        assert notification is not None
        async with session_maker() as session:
            rows = (await session.execute(
                select(Notification).where(Notification.user_id == test_user.id)
            )).scalars().all()
        assert len(rows) == 1
        assert rows[0].status == NotificationStatus.PENDING
        assert rows[0].type == NotificationType.PUSH
        assert rows[0].data == {"membership_id": str(membership_id)}

    async def test_failure_is_not_raised(self, test_user):
        dispatcher = NotificationDispatcher(BrokenSessionFactory())

        result = await dispatcher.notify(test_user.id, title="Seat booked", content="A1")

        assert result is None
