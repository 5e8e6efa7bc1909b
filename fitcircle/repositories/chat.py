from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, insert, exists, literal, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import List, Optional

from fitcircle.core.database import utcnow
from fitcircle.models.chat import Group, Message, MessageRead


class ChatRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    def _direct_between(self, user1_id: int, user2_id: int):
        return and_(
            Message.group_id.is_(None),
            or_(
                and_(Message.sender_id == user1_id, Message.recipient_id == user2_id),
                and_(Message.sender_id == user2_id, Message.recipient_id == user1_id)
            )
        )

    # Message Management
    async def create_direct_message(self, sender_id: int, recipient_id: int, text: str) -> Message:
        """Create a direct message with an empty read-set"""
        message = Message(sender_id=sender_id, recipient_id=recipient_id, text=text)
        self.db.add(message)
        await self.db.commit()
        return await self.get_message_by_id(message.id)

    async def create_group_message(self, sender_id: int, group_id: int, text: str) -> Message:
        """Create a group message and bump the group's activity timestamp"""
        message = Message(sender_id=sender_id, group_id=group_id, text=text)
        self.db.add(message)

        await self.db.execute(
            update(Group).where(Group.id == group_id).values(updated_at=utcnow())
        )

        await self.db.commit()
        return await self.get_message_by_id(message.id)

    async def get_message_by_id(self, message_id: int) -> Optional[Message]:
        """Get message by ID with sender and read-set"""
        stmt = select(Message).options(
            selectinload(Message.sender),
            selectinload(Message.reads)
        ).where(Message.id == message_id).execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_direct_messages(self, user1_id: int, user2_id: int, limit: int = 100) -> List[Message]:
        """Latest `limit` messages between two users, oldest first"""
        stmt = select(Message).options(
            selectinload(Message.sender),
            selectinload(Message.reads)
        ).where(
            self._direct_between(user1_id, user2_id)
        ).order_by(
            desc(Message.created_at), desc(Message.id)
        ).limit(limit).execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        messages = list(result.scalars().all())

        # Return messages in chronological order (oldest first)
        messages.reverse()
        return messages

    async def get_group_messages(self, group_id: int, limit: int = 100) -> List[Message]:
        """Latest `limit` messages of a group, oldest first"""
        stmt = select(Message).options(
            selectinload(Message.sender),
            selectinload(Message.reads)
        ).where(
            Message.group_id == group_id
        ).order_by(
            desc(Message.created_at), desc(Message.id)
        ).limit(limit)

        result = await self.db.execute(stmt)
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    # Read Receipts
    async def mark_direct_messages_read(self, reader_id: int, sender_id: int) -> int:
        """Add reader to the read-set of every DM sender sent them; already-read messages are skipped"""
        already_read = exists().where(
            and_(
                MessageRead.message_id == Message.id,
                MessageRead.user_id == reader_id
            )
        )
        unread = select(Message.id, literal(reader_id), literal(utcnow())).where(
            and_(
                Message.group_id.is_(None),
                Message.sender_id == sender_id,
                Message.recipient_id == reader_id,
                ~already_read
            )
        )
        stmt = insert(MessageRead).from_select(["message_id", "user_id", "read_at"], unread)

        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            # A concurrent fetch by the same reader already marked them
            await self.db.rollback()
            return 0

        return max(result.rowcount or 0, 0)

    async def get_unread_count(self, reader_id: int, sender_id: int) -> int:
        """Count DMs from sender to reader that reader has not read"""
        already_read = exists().where(
            and_(
                MessageRead.message_id == Message.id,
                MessageRead.user_id == reader_id
            )
        )
        stmt = select(func.count(Message.id)).where(
            and_(
                Message.group_id.is_(None),
                Message.sender_id == sender_id,
                Message.recipient_id == reader_id,
                ~already_read
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    # Conversations
    async def get_direct_partner_ids(self, user_id: int) -> List[int]:
        """Distinct users this user has sent DMs to or received DMs from"""
        sent_stmt = select(Message.recipient_id).where(
            and_(Message.sender_id == user_id, Message.group_id.is_(None))
        ).distinct()
        received_stmt = select(Message.sender_id).where(
            and_(Message.recipient_id == user_id, Message.group_id.is_(None))
        ).distinct()

        sent = (await self.db.execute(sent_stmt)).scalars().all()
        received = (await self.db.execute(received_stmt)).scalars().all()

        partner_ids = []
        for partner_id in list(sent) + list(received):
            if partner_id is not None and partner_id not in partner_ids:
                partner_ids.append(partner_id)
        return partner_ids

    async def get_latest_direct_message(self, user1_id: int, user2_id: int) -> Optional[Message]:
        """Get the latest message exchanged between two users"""
        stmt = select(Message).options(
            selectinload(Message.sender),
            selectinload(Message.reads)
        ).where(
            self._direct_between(user1_id, user2_id)
        ).order_by(desc(Message.created_at), desc(Message.id)).limit(1)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
