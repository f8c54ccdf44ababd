"""
Notification dispatch

Writes outbox rows for the push/email delivery worker. Dispatch is best-effort:
callers have already committed their own transaction, and a failure here is
logged and never raised back into them.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import DatabaseManager
from app.models.notification import Notification, NotificationStatus, NotificationType

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget notifications for seat and membership events"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self.db_manager = DatabaseManager(session_factory)

    async def notify(
        self,
        user_id: uuid.UUID,
        title: str,
        content: str,
        data: Optional[Dict[str, Any]] = None,
        notification_type: NotificationType = NotificationType.PUSH,
    ) -> Optional[Notification]:
        try:
            notification = await self.db_manager.execute_in_transaction(
                self._enqueue, user_id, title, content, data or {}, notification_type
            )
        except Exception:
            logger.exception(f"Failed to enqueue notification '{title}' for user {user_id}")
            return None

        logger.info(f"Notification queued for user {user_id}: {title}")
        return notification

    @staticmethod
    async def _enqueue(
        db: AsyncSession,
        user_id: uuid.UUID,
        title: str,
        content: str,
        data: Dict[str, Any],
        notification_type: NotificationType,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            content=content,
            data={key: str(value) for key, value in data.items()},
            status=NotificationStatus.PENDING,
        )
        db.add(notification)
        await db.flush()
        return notification
