"""
MessageRepository for database operations on Message model
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Message
from models.common import PaginationMeta, build_meta
from models.messages import MessageCreate, MessagesQuery


def unread_condition():
    # Rows created before is_read had a default carry NULL
    return or_(Message.is_read.is_(False), Message.is_read.is_(None))


class MessageRepository:
    """Repository class for contact messages."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_messages(self, params: MessagesQuery) -> Tuple[List[Message], PaginationMeta]:
        conditions = []
        if params.status == "unread":
            conditions.append(unread_condition())
        elif params.status == "read":
            conditions.append(Message.is_read.is_(True))

        total = await self.db.scalar(select(func.count(Message.id)).where(*conditions))
        result = await self.db.execute(
            select(Message)
            .where(*conditions)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset(params.offset)
            .limit(params.page_size)
        )
        return list(result.scalars().all()), build_meta(params.page, params.page_size, total or 0)

    async def get_message_by_id(self, message_id: int) -> Optional[Message]:
        result = await self.db.execute(select(Message).where(Message.id == message_id))
        return result.scalar_one_or_none()

    async def create_message(self, data: MessageCreate, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> Message:
        message = Message(
            name=data.name,
            email=data.email,
            subject=data.subject or None,
            message=data.message,
            is_read=False,
            is_archived=False,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(message)
        await self.db.flush()
        return message

    async def mark_read(self, message: Message, read: bool) -> Message:
        message.is_read = read
        await self.db.flush()
        return message

    async def archive(self, message: Message, archived: bool) -> Message:
        message.is_archived = archived
        await self.db.flush()
        return message

    async def count_unread(self) -> int:
        return await self.db.scalar(select(func.count(Message.id)).where(unread_condition())) or 0
