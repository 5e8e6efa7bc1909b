import logging
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from fitcircle.core.config import settings
from fitcircle.core.websocket import connection_manager
from fitcircle.repositories.chat import ChatRepository
from fitcircle.repositories.friendship import FriendshipRepository
from fitcircle.repositories.user import UserRepository
from fitcircle.schemas.chat import (
    ChatUser, Conversation, ConversationList, Message, MessageList, MessageResponse,
    WebSocketEventType, MESSAGE_MAX_LENGTH
)
from fitcircle.schemas.user import UserSummary
from fitcircle.models.user import User
from fitcircle.utils.exceptions import NotFoundError, NotFriendsError
from fitcircle.utils.text import clean_text

logger = logging.getLogger(__name__)


def build_message_response(message) -> Message:
    """Build message response with the sender resolved"""
    return Message(
        id=message.id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        group_id=message.group_id,
        text=message.text,
        read_by=[read.user_id for read in message.reads],
        created_at=message.created_at,
        sender=ChatUser(
            id=message.sender.id,
            name=message.sender.name,
            is_premium=message.sender.is_premium
        )
    )


def _conversation_sort_key(conversation: Conversation):
    last = conversation.last_message
    if last is None:
        return (False, None, 0)
    return (True, last.created_at, last.id)


class ChatService:
    """Direct (one-to-one) messaging between friends"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.friendship_repo = FriendshipRepository(db)
        self.user_repo = UserRepository(db)

    async def send_direct_message(self, sender: User, recipient_id: int, text: Optional[str]) -> MessageResponse:
        """Send a DM; only friends may message each other"""
        text = clean_text(text, MESSAGE_MAX_LENGTH)

        if not await self.friendship_repo.are_friends(sender.id, recipient_id):
            raise NotFriendsError("You can only message friends")

        message = await self.chat_repo.create_direct_message(sender.id, recipient_id, text)
        message_response = build_message_response(message)

        await connection_manager.notify(
            [recipient_id],
            WebSocketEventType.DIRECT_MESSAGE,
            {"message": message_response.model_dump(mode="json")}
        )

        return MessageResponse(message=message_response)

    async def get_direct_messages(self, viewer: User, other_user_id: int, limit: Optional[int] = None) -> MessageList:
        """Latest messages between viewer and the other user, marking theirs as read"""
        other_user = await self.user_repo.get_by_id(other_user_id)
        if not other_user:
            raise NotFoundError("User not found")

        viewer_id = viewer.id
        limit = limit or settings.THREAD_MESSAGE_LIMIT

        # Mark first so the returned read-sets already include the viewer
        marked = await self.chat_repo.mark_direct_messages_read(viewer_id, other_user_id)
        if marked:
            logger.debug(f"User {viewer_id} read {marked} messages from user {other_user_id}")

        messages = await self.chat_repo.get_direct_messages(viewer_id, other_user_id, limit)
        return MessageList(messages=[build_message_response(message) for message in messages])

    async def get_conversations(self, viewer: User) -> ConversationList:
        """One entry per DM partner with last message and unread count, newest first"""
        partner_ids = await self.chat_repo.get_direct_partner_ids(viewer.id)
        partners = await self.user_repo.get_many(partner_ids)

        conversations = []
        for partner in partners:
            latest = await self.chat_repo.get_latest_direct_message(viewer.id, partner.id)
            unread = await self.chat_repo.get_unread_count(viewer.id, partner.id)
            conversations.append(Conversation(
                user=UserSummary.model_validate(partner),
                last_message=build_message_response(latest) if latest else None,
                unread=unread
            ))

        # Conversations without a resolvable last message go last
        conversations.sort(key=_conversation_sort_key, reverse=True)
        return ConversationList(conversations=conversations)
