from typing import List

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from auralis.models.conversation_message import ConversationMessage


class MessageRepository:
    """Transcript lines of a call. Keyed by message id so redelivered events merge."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, message: dict) -> None:
        dialect = self.db_session.get_bind().dialect.name
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(ConversationMessage).values(**message)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={key: stmt.excluded[key] for key in message if key != "id"},
        )
        await self.db_session.execute(stmt)

    async def list_for_call(self, call_id: str, limit: int = 200) -> List[ConversationMessage]:
        result = await self.db_session.execute(
            select(ConversationMessage)
            .where(ConversationMessage.call_id == call_id)
            .order_by(ConversationMessage.timestamp.asc())
            .limit(limit)
        )
        return list(result.scalars().all())
