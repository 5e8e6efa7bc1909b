import logging
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Optional

from fitcircle.core.config import settings
from fitcircle.core.websocket import connection_manager
from fitcircle.repositories.chat import ChatRepository
from fitcircle.repositories.friendship import FriendshipRepository
from fitcircle.repositories.group import GroupRepository
from fitcircle.schemas.chat import (
    ChatUser, Group, GroupCreate, GroupList, GroupResponse, GroupThread, MessageResponse,
    WebSocketEventType, MESSAGE_MAX_LENGTH, GROUP_NAME_MAX_LENGTH, GROUP_DESCRIPTION_MAX_LENGTH, DEFAULT_GROUP_EMOJI
)
from fitcircle.models.user import User
from fitcircle.services.chat import build_message_response
from fitcircle.utils.exceptions import NotFoundError, AuthorizationError, ValidationError
from fitcircle.utils.text import clean_text

logger = logging.getLogger(__name__)


def build_group_response(group) -> Group:
    return Group(
        id=group.id,
        name=group.name,
        description=group.description,
        emoji=group.emoji or DEFAULT_GROUP_EMOJI,
        creator=ChatUser(id=group.creator.id, name=group.creator.name, is_premium=group.creator.is_premium),
        members=[
            ChatUser(id=member.user.id, name=member.user.name, is_premium=member.user.is_premium)
            for member in group.members
        ],
        admin_ids=[admin.user_id for admin in group.admins],
        created_at=group.created_at,
        updated_at=group.updated_at
    )


class GroupService:
    """Named member groups with a shared message log"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.group_repo = GroupRepository(db)
        self.chat_repo = ChatRepository(db)
        self.friendship_repo = FriendshipRepository(db)

    async def _get_group(self, group_id: int):
        group = await self.group_repo.get_group_by_id(group_id)
        if not group:
            raise NotFoundError("Group not found")
        return group

    async def create_group(self, creator: User, group_data: GroupCreate) -> GroupResponse:
        """Create a group with the creator and whichever candidates are their friends"""
        name = (group_data.name or "").strip()
        if not name:
            raise ValidationError("Group name required")
        if len(name) > GROUP_NAME_MAX_LENGTH:
            raise ValidationError(f"Group name must be at most {GROUP_NAME_MAX_LENGTH} characters")

        description = (group_data.description or "").strip() or None
        if description and len(description) > GROUP_DESCRIPTION_MAX_LENGTH:
            raise ValidationError(f"Group description must be at most {GROUP_DESCRIPTION_MAX_LENGTH} characters")

        # Non-friends are dropped rather than rejected
        friend_ids = set(await self.friendship_repo.get_friend_ids(creator.id))
        member_ids = [user_id for user_id in group_data.member_ids if user_id in friend_ids]

        group = await self.group_repo.create_group(
            creator.id,
            name,
            member_ids,
            description=description,
            emoji=group_data.emoji or DEFAULT_GROUP_EMOJI
        )

        logger.info(f"User {creator.id} created group {group.id} with {len(group.members)} members")
        return GroupResponse(group=build_group_response(group))

    async def get_user_groups(self, user: User) -> GroupList:
        groups = await self.group_repo.get_user_groups(user.id)
        return GroupList(groups=[build_group_response(group) for group in groups])

    async def send_group_message(self, sender: User, group_id: int, text: Optional[str]) -> MessageResponse:
        """Send a message to a group the sender belongs to"""
        group = await self._get_group(group_id)
        text = clean_text(text, MESSAGE_MAX_LENGTH)

        member_ids = [member.user_id for member in group.members]
        if sender.id not in member_ids:
            raise AuthorizationError("Not a group member")

        message = await self.chat_repo.create_group_message(sender.id, group_id, text)
        message_response = build_message_response(message)

        await connection_manager.notify(
            [user_id for user_id in member_ids if user_id != sender.id],
            WebSocketEventType.GROUP_MESSAGE,
            {"group_id": group_id, "message": message_response.model_dump(mode="json")}
        )

        return MessageResponse(message=message_response)

    async def get_group_messages(self, viewer: User, group_id: int, limit: Optional[int] = None) -> GroupThread:
        """Messages of a group, oldest first; members only"""
        group = await self._get_group(group_id)
        if viewer.id not in [member.user_id for member in group.members]:
            raise AuthorizationError("Not a group member")

        messages = await self.chat_repo.get_group_messages(group_id, limit or settings.THREAD_MESSAGE_LIMIT)
        return GroupThread(
            messages=[build_message_response(message) for message in messages],
            group=build_group_response(group)
        )

    async def join_group(self, user: User, group_id: int) -> GroupResponse:
        """Self-join; no friendship with existing members is required"""
        await self._get_group(group_id)

        if await self.group_repo.add_member(group_id, user.id):
            logger.info(f"User {user.id} joined group {group_id}")

        group = await self.group_repo.get_group_by_id(group_id)
        return GroupResponse(group=build_group_response(group))

    async def leave_group(self, user: User, group_id: int) -> Dict[str, str]:
        await self._get_group(group_id)

        if await self.group_repo.remove_member(group_id, user.id):
            logger.info(f"User {user.id} left group {group_id}")

        return {"message": "Left group"}
