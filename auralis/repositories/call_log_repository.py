from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auralis.core.utils.enums import CallLogTypeEnum
from auralis.models.call_log import CallLogEntry


class CallLogRepository:
    """Append-only audit trail per call."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(
        self,
        call_id: str,
        log_type: CallLogTypeEnum | str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> CallLogEntry:
        entry = CallLogEntry(
            call_id=call_id,
            type=log_type.value if isinstance(log_type, CallLogTypeEnum) else str(log_type),
            message=message,
            data=data,
        )
        self.db_session.add(entry)
        await self.db_session.flush()
        return entry

    async def list_for_call(self, call_id: str) -> List[CallLogEntry]:
        result = await self.db_session.execute(
            select(CallLogEntry)
            .where(CallLogEntry.call_id == call_id)
            .order_by(CallLogEntry.timestamp.asc(), CallLogEntry.id.asc())
        )
        return list(result.scalars().all())
