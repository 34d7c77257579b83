from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auralis.core.logging import console_logger
from auralis.core.utils.timeutils import utcnow
from auralis.models.notification import Notification


class NotificationRepository:
    """Repository for dashboard notifications"""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(self, data: Dict[str, Any]) -> Notification:
        values = dict(data)
        if "metadata" in values:
            values["extra_metadata"] = values.pop("metadata")
        notification = Notification(**values)
        self.db_session.add(notification)
        await self.db_session.flush()
        await self.db_session.refresh(notification)
        console_logger.info(f"Created notification {notification.id} ({notification.type})")
        return notification

    async def list(
        self,
        is_read: Optional[bool] = None,
        severity: Optional[str] = None,
        limit: int = 20,
    ) -> List[Notification]:
        query = select(Notification)
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if severity:
            query = query.where(Notification.severity == severity)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: int) -> bool:
        result = await self.db_session.execute(
            update(Notification).where(Notification.id == notification_id).values(is_read=True)
        )
        return (result.rowcount or 0) > 0

    async def delete_expired(self) -> int:
        result = await self.db_session.execute(
            delete(Notification).where(
                Notification.expires_at.is_not(None),
                Notification.expires_at <= utcnow(),
            )
        )
        return result.rowcount or 0
