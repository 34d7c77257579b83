from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import case, func, literal, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from auralis.core.logging import console_logger
from auralis.core.utils.enums import CallStatusEnum, VendorEnum
from auralis.core.utils.timeutils import utcnow
from auralis.models.call_record import CallRecord
from auralis.services.status_mapper import TERMINAL_STATUSES, resolve_vendor


CALL_RECORD_FIELDS = frozenset(
    column.key for column in CallRecord.__table__.columns
)

_VENDOR_COLUMNS = {
    VendorEnum.TWILIO: CallRecord.twilio_call_sid,
    VendorEnum.VOICE_AGENT: CallRecord.elevenlabs_call_id,
}

# Once a record is terminal its outcome is fixed; ended_at is only filled in.
TERMINAL_OUTCOME_FIELDS = frozenset({"status", "end_reason", "ended_at"})
_TERMINAL_VALUES = sorted(status.value for status in TERMINAL_STATUSES)


def _keep_terminal_outcome(key: str, incoming: Any) -> Any:
    """SET expression that keeps the stored outcome of a terminal record."""
    stored = CallRecord.__table__.c[key]
    kept = func.coalesce(stored, incoming) if key == "ended_at" else stored
    return case((CallRecord.__table__.c.status.in_(_TERMINAL_VALUES), kept), else_=incoming)


def clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unknown keys and None values so a write never erases stored fields."""
    unknown = set(fields) - CALL_RECORD_FIELDS
    if unknown:
        console_logger.warning("Ignoring unknown call record fields", fields=sorted(unknown))
    return {
        key: (value.value if isinstance(value, CallStatusEnum) else value)
        for key, value in fields.items()
        if key in CALL_RECORD_FIELDS and value is not None
    }


class CallRecordRepository:
    """Repository for call record database operations"""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _insert(self):
        dialect = self.db_session.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(CallRecord)
        return postgresql.insert(CallRecord)

    async def merge(self, fields: Dict[str, Any]) -> None:
        """INSERT ... ON CONFLICT (call_id) DO UPDATE of the supplied columns only."""
        values = clean_fields(fields)
        if not values.get("call_id"):
            raise ValueError("call_id is required for a call record write")

        now = utcnow()
        values.setdefault("updated_at", now)
        insert_values = {"status": CallStatusEnum.INITIATING.value, "created_at": now, **values}

        stmt = self._insert().values(**insert_values)
        merged = {
            key: _keep_terminal_outcome(key, stmt.excluded[key]) if key in TERMINAL_OUTCOME_FIELDS else stmt.excluded[key]
            for key in values
            if key not in ("call_id", "created_at")
        }
        stmt = stmt.on_conflict_do_update(index_elements=["call_id"], set_=merged)
        await self.db_session.execute(stmt)

    async def merge_many(self, records: Iterable[Dict[str, Any]]) -> int:
        count = 0
        for fields in records:
            await self.merge(fields)
            count += 1
        return count

    async def update(self, call_id: str, fields: Dict[str, Any]) -> bool:
        values = clean_fields(fields)
        values.pop("call_id", None)
        values["updated_at"] = utcnow()
        for key in TERMINAL_OUTCOME_FIELDS & values.keys():
            values[key] = _keep_terminal_outcome(key, literal(values[key], CallRecord.__table__.c[key].type))
        result = await self.db_session.execute(
            update(CallRecord).where(CallRecord.call_id == call_id).values(**values)
        )
        return (result.rowcount or 0) > 0

    async def get(self, call_id: str) -> Optional[CallRecord]:
        result = await self.db_session.execute(
            select(CallRecord).where(CallRecord.call_id == call_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_vendor_id(self, vendor: str | VendorEnum, vendor_id: str) -> Optional[CallRecord]:
        column = _VENDOR_COLUMNS[resolve_vendor(vendor)]
        result = await self.db_session.execute(
            select(CallRecord)
            .where(column == vendor_id)
            .order_by(CallRecord.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_recent(self, limit: int = 20, since_days: Optional[float] = None) -> List[CallRecord]:
        query = select(CallRecord)
        if since_days is not None:
            query = query.where(CallRecord.created_at >= utcnow() - timedelta(days=since_days))
        query = query.order_by(CallRecord.created_at.desc()).limit(limit)
        result = await self.db_session.execute(query)
        return list(result.scalars().all())

    async def search_by_phone(self, to_number: str, limit: int = 50, since_days: Optional[float] = None) -> List[CallRecord]:
        query = select(CallRecord).where(CallRecord.to_number == to_number)
        if since_days is not None:
            query = query.where(CallRecord.created_at >= utcnow() - timedelta(days=since_days))
        result = await self.db_session.execute(query.order_by(CallRecord.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def statistics(self) -> Dict[str, Any]:
        rows = (
            await self.db_session.execute(
                select(
                    CallRecord.status,
                    func.count(),
                    func.coalesce(func.sum(CallRecord.duration_sec), 0),
                ).group_by(CallRecord.status)
            )
        ).all()

        by_status = {status: count for status, count, _ in rows}
        total_duration = sum(int(duration or 0) for _, _, duration in rows)
        completed = by_status.get(CallStatusEnum.COMPLETED.value, 0)
        in_progress = sum(
            by_status.get(status.value, 0)
            for status in (CallStatusEnum.CALLING, CallStatusEnum.RINGING, CallStatusEnum.IN_PROGRESS)
        )
        return {
            "total": sum(by_status.values()),
            "completed": completed,
            "failed": by_status.get(CallStatusEnum.FAILED.value, 0),
            "no_answer": by_status.get(CallStatusEnum.NO_ANSWER.value, 0),
            "in_progress": in_progress,
            "by_status": by_status,
            "total_duration_sec": total_duration,
            "average_duration_sec": round(total_duration / completed) if completed else 0,
        }
