from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from fitcircle.core.database import get_db
from fitcircle.api.deps import get_current_user
from fitcircle.schemas.chat import (
    ConversationList, GroupCreate, GroupList, GroupResponse, GroupThread,
    MessageCreate, MessageList, MessageResponse
)
from fitcircle.models.user import User as UserModel
from fitcircle.services.chat import ChatService
from fitcircle.services.group import GroupService

router = APIRouter()


# Direct messages
@router.get("/dm/{user_id}", response_model=MessageList)
async def get_direct_messages(
    user_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of messages to return"),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Conversation with a user; marks their messages as read"""
    service = ChatService(db)
    return await service.get_direct_messages(current_user, user_id, limit)


@router.post("/dm/{user_id}", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_direct_message(
    user_id: int,
    message_data: MessageCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a direct message to a friend"""
    service = ChatService(db)
    return await service.send_direct_message(current_user, user_id, message_data.text)


@router.get("/conversations", response_model=ConversationList)
async def get_conversations(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """DM conversations with last message and unread count"""
    service = ChatService(db)
    return await service.get_conversations(current_user)


# Group chat
@router.get("/groups", response_model=GroupList)
async def get_groups(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Groups the current user belongs to"""
    service = GroupService(db)
    return await service.get_user_groups(current_user)


@router.post("/groups", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a group with friends as members"""
    service = GroupService(db)
    return await service.create_group(current_user, group_data)


@router.get("/groups/{group_id}/messages", response_model=GroupThread)
async def get_group_messages(
    group_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of messages to return"),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Messages of a group"""
    service = GroupService(db)
    return await service.get_group_messages(current_user, group_id, limit)


@router.post("/groups/{group_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_group_message(
    group_id: int,
    message_data: MessageCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a message to a group"""
    service = GroupService(db)
    return await service.send_group_message(current_user, group_id, message_data.text)


@router.post("/groups/{group_id}/join", response_model=GroupResponse)
async def join_group(
    group_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Join a group"""
    service = GroupService(db)
    return await service.join_group(current_user, group_id)


@router.delete("/groups/{group_id}/leave")
async def leave_group(
    group_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Leave a group"""
    service = GroupService(db)
    return await service.leave_group(current_user, group_id)
