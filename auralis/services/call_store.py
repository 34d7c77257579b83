from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from auralis.core.database import Database, db_manager
from auralis.core.errors import StorageError
from auralis.core.logging import console_logger
from auralis.core.utils.enums import CallLogTypeEnum, CallStatusEnum, VendorEnum
from auralis.models.call_log import CallLogEntry
from auralis.models.call_record import CallRecord
from auralis.models.conversation_message import ConversationMessage
from auralis.models.notification import Notification
from auralis.repositories.call_log_repository import CallLogRepository
from auralis.repositories.call_record_repository import CallRecordRepository
from auralis.repositories.message_repository import MessageRepository
from auralis.repositories.notification_repository import NotificationRepository


class CallRecordStore:
    """Call record persistence with the degrade policy applied.

    Each operation opens its own short transaction. When no database is
    configured, writes are skipped with a warning and reads come back empty;
    only ``create_or_merge_record`` with ``critical=True`` raises, and only
    when a configured store fails.
    """

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db_manager

    @property
    def configured(self) -> bool:
        return self.database.configured

    async def create_or_merge_record(self, fields: Dict[str, Any], critical: bool = False) -> bool:
        call_id = fields.get("call_id")
        if not self.configured:
            console_logger.warning("Call record store not configured; skipping write", call_id=call_id)
            return False
        try:
            async with self.database.get_session() as session:
                await CallRecordRepository(session).merge(fields)
            return True
        except (SQLAlchemyError, StorageError) as e:
            console_logger.error("Failed to write call record", call_id=call_id, error=str(e))
            if critical:
                raise StorageError(
                    "Failed to create call record",
                    details=str(e),
                    call_id=call_id,
                ) from e
            return False

    async def update_record(self, call_id: str, fields: Dict[str, Any]) -> bool:
        """Partial update. Never raises; returns whether a record was updated.

        A terminal record keeps its status and end reason whatever status
        arrives later, terminal or not. The remaining fields are still merged.
        Merges through ``create_or_merge_record`` and ``upsert_many`` follow
        the same rule.
        """
        if not self.configured:
            console_logger.warning("Call record store not configured; skipping update", call_id=call_id)
            return False
        try:
            async with self.database.get_session() as session:
                return await CallRecordRepository(session).update(call_id, fields)
        except (SQLAlchemyError, StorageError) as e:
            console_logger.error("Failed to update call record", call_id=call_id, error=str(e))
            return False

    async def get_record(self, call_id: str) -> Optional[CallRecord]:
        if not self.configured:
            return None
        async with self.database.get_session() as session:
            return await CallRecordRepository(session).get(call_id)

    async def find_by_vendor_id(self, vendor: str | VendorEnum, vendor_id: Optional[str]) -> Optional[CallRecord]:
        if not vendor_id or not self.configured:
            return None
        try:
            async with self.database.get_session() as session:
                return await CallRecordRepository(session).get_by_vendor_id(vendor, vendor_id)
        except (SQLAlchemyError, StorageError, ValueError) as e:
            console_logger.error("Vendor id lookup failed", vendor=str(vendor), vendor_id=vendor_id, error=str(e))
            return None

    async def list_recent(self, limit: int = 20, since_days: Optional[float] = None) -> List[CallRecord]:
        if not self.configured:
            return []
        async with self.database.get_session() as session:
            return await CallRecordRepository(session).list_recent(limit=limit, since_days=since_days)

    async def upsert_many(self, records: Iterable[Dict[str, Any]]) -> int:
        records = list(records)
        if not self.configured:
            console_logger.warning("Call record store not configured; skipping batch write", count=len(records))
            return 0
        async with self.database.get_session() as session:
            return await CallRecordRepository(session).merge_many(records)

    async def search_by_phone(self, to_number: str, limit: int = 50, since_days: Optional[float] = None) -> List[CallRecord]:
        if not self.configured:
            return []
        async with self.database.get_session() as session:
            return await CallRecordRepository(session).search_by_phone(to_number, limit=limit, since_days=since_days)

    async def statistics(self) -> Dict[str, Any]:
        if not self.configured:
            return {}
        async with self.database.get_session() as session:
            return await CallRecordRepository(session).statistics()

    # ---------------------------------------------------------------
    # Call logs and transcript
    # ---------------------------------------------------------------

    async def add_call_log(
        self,
        call_id: str,
        log_type: CallLogTypeEnum,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Best effort; an audit entry never fails the caller."""
        if not self.configured:
            return
        try:
            async with self.database.get_session() as session:
                await CallLogRepository(session).add(call_id, log_type, message, data)
        except (SQLAlchemyError, StorageError) as e:
            console_logger.warning("Failed to write call log", call_id=call_id, error=str(e))

    async def list_call_logs(self, call_id: str) -> List[CallLogEntry]:
        if not self.configured:
            return []
        async with self.database.get_session() as session:
            return await CallLogRepository(session).list_for_call(call_id)

    async def add_message(self, message: Dict[str, Any]) -> None:
        if not self.configured:
            return
        try:
            async with self.database.get_session() as session:
                await MessageRepository(session).add(message)
        except (SQLAlchemyError, StorageError) as e:
            console_logger.warning("Failed to write conversation message", call_id=message.get("call_id"), error=str(e))

    async def list_messages(self, call_id: str, limit: int = 200) -> List[ConversationMessage]:
        if not self.configured:
            return []
        async with self.database.get_session() as session:
            return await MessageRepository(session).list_for_call(call_id, limit=limit)

    # ---------------------------------------------------------------
    # Notifications
    # ---------------------------------------------------------------

    async def create_notification(self, data: Dict[str, Any]) -> Optional[Notification]:
        if not self.configured:
            return None
        try:
            async with self.database.get_session() as session:
                return await NotificationRepository(session).create(data)
        except (SQLAlchemyError, StorageError) as e:
            console_logger.warning("Failed to create notification", error=str(e))
            return None

    async def list_notifications(
        self,
        is_read: Optional[bool] = None,
        severity: Optional[str] = None,
        limit: int = 20,
    ) -> List[Notification]:
        if not self.configured:
            return []
        async with self.database.get_session() as session:
            return await NotificationRepository(session).list(is_read=is_read, severity=severity, limit=limit)

    async def mark_notification_read(self, notification_id: int) -> bool:
        if not self.configured:
            return False
        async with self.database.get_session() as session:
            return await NotificationRepository(session).mark_read(notification_id)

    async def cleanup_expired_notifications(self) -> int:
        if not self.configured:
            return 0
        async with self.database.get_session() as session:
            deleted = await NotificationRepository(session).delete_expired()
        console_logger.info(f"Deleted {deleted} expired notifications")
        return deleted

    async def notify_call_ended(self, record: CallRecord) -> None:
        """Record a call_completed / call_failed notification for a terminal call."""
        completed = record.status == CallStatusEnum.COMPLETED.value
        outcome = "completed" if completed else record.status.replace("-", " ")
        await self.create_notification({
            "type": "call_completed" if completed else "call_failed",
            "severity": "info" if completed else "warning",
            "title": "Call completed" if completed else "Call failed",
            "message": f"Call to {record.to_number or 'unknown number'} {outcome}"
            + (f" ({record.end_reason})" if record.end_reason else ""),
            "related_id": record.call_id,
            "related_type": "call",
            "metadata": {
                "durationSec": record.duration_sec,
                "endReason": record.end_reason,
            },
        })


call_store = CallRecordStore()


def get_call_store() -> CallRecordStore:
    """FastAPI dependency returning the process call record store."""
    return call_store
