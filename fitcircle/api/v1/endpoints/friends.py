from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fitcircle.core.database import get_db
from fitcircle.api.deps import get_current_user
from fitcircle.schemas.friendship import (
    UserSearchResults, FriendRequestCreate, FriendRequestSent, FriendRequestList, FriendsList
)
from fitcircle.models.user import User as UserModel
from fitcircle.services.friendship import FriendshipService

router = APIRouter()


@router.get("/search", response_model=UserSearchResults)
async def search_users(
    q: str = Query("", description="Search query (name or email)"),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Search for users by name or email"""
    service = FriendshipService(db)
    return UserSearchResults(users=await service.search_users(q, current_user))


@router.get("/requests", response_model=FriendRequestList)
async def get_incoming_requests(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending requests addressed to the current user"""
    service = FriendshipService(db)
    return await service.get_incoming_requests(current_user)


@router.get("/sent", response_model=FriendRequestList)
async def get_sent_requests(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Pending requests sent by the current user"""
    service = FriendshipService(db)
    return await service.get_sent_requests(current_user)


@router.get("", response_model=FriendsList)
async def get_friends(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get list of current user's friends"""
    service = FriendshipService(db)
    return await service.get_friends_list(current_user)


@router.post("/request", response_model=FriendRequestSent, status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    request_data: FriendRequestCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a friend request by email"""
    service = FriendshipService(db)
    return await service.send_friend_request(current_user, request_data.email)


@router.put("/request/{request_id}/accept")
async def accept_friend_request(
    request_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Accept a friend request"""
    service = FriendshipService(db)
    return await service.accept_friend_request(current_user, request_id)


@router.put("/request/{request_id}/decline")
async def decline_friend_request(
    request_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Decline a friend request"""
    service = FriendshipService(db)
    return await service.decline_friend_request(current_user, request_id)


@router.delete("/{friend_id}")
async def remove_friend(
    friend_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove friendship with another user"""
    service = FriendshipService(db)
    return await service.remove_friend(current_user, friend_id)
