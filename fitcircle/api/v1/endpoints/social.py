from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from fitcircle.core.database import get_db
from fitcircle.api.deps import get_current_user
from fitcircle.schemas.post import CommentCreate, CommentList, Feed, LikeResult, PostCreate, PostResponse
from fitcircle.models.user import User as UserModel
from fitcircle.services.social import SocialService

router = APIRouter()


@router.get("/feed", response_model=Feed)
async def get_feed(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Posts per page"),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Posts by the current user and their friends"""
    service = SocialService(db)
    return await service.get_feed(current_user, page, limit)


@router.post("/post", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Share an update"""
    service = SocialService(db)
    return await service.create_post(current_user, post_data)


@router.delete("/post/{post_id}")
async def delete_post(
    post_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of your own posts"""
    service = SocialService(db)
    return await service.delete_post(current_user, post_id)


@router.put("/post/{post_id}/like", response_model=LikeResult)
async def toggle_like(
    post_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Like or unlike a post"""
    service = SocialService(db)
    return await service.toggle_like(current_user, post_id)


@router.post("/post/{post_id}/comment", response_model=CommentList)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Comment on a post"""
    service = SocialService(db)
    return await service.add_comment(current_user, post_id, comment_data.text)


@router.delete("/post/{post_id}/comment/{comment_id}", response_model=CommentList)
async def delete_comment(
    post_id: int,
    comment_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a comment you wrote or one on your post"""
    service = SocialService(db)
    return await service.delete_comment(current_user, post_id, comment_id)


@router.post("/post/{post_id}/comment/{comment_id}/reply", response_model=CommentList)
async def add_reply(
    post_id: int,
    comment_id: int,
    comment_data: CommentCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Reply to a comment"""
    service = SocialService(db)
    return await service.add_reply(current_user, post_id, comment_id, comment_data.text)
