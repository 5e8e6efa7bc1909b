import logging
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Optional

from fitcircle.core.config import settings
from fitcircle.repositories.friendship import FriendshipRepository
from fitcircle.repositories.post import PostRepository
from fitcircle.schemas.post import (
    Comment, CommentList, Feed, LikeResult, Post, PostCreate, PostResponse, Reply,
    POST_PAYLOADS, POST_CONTENT_MAX_LENGTH, COMMENT_MAX_LENGTH
)
from fitcircle.schemas.user import UserSummary
from fitcircle.models.user import User
from fitcircle.utils.exceptions import NotFoundError, AuthorizationError, ValidationError
from fitcircle.utils.text import clean_text

logger = logging.getLogger(__name__)


def build_comment_list(post) -> CommentList:
    """Comment tree of a post with authors resolved"""
    return CommentList(comments=[
        Comment(
            id=comment.id,
            user=UserSummary.model_validate(comment.author),
            text=comment.text,
            replies=[
                Reply(
                    id=reply.id,
                    user=UserSummary.model_validate(reply.author),
                    text=reply.text,
                    created_at=reply.created_at
                )
                for reply in comment.replies
            ],
            created_at=comment.created_at
        )
        for comment in post.comments
    ])


def build_post_response(post, viewer_id: int) -> Post:
    like_ids = [like.user_id for like in post.likes]
    return Post(
        id=post.id,
        user=UserSummary.model_validate(post.author),
        type=post.type,
        content=post.content or "",
        data=post.data or {},
        visibility=post.visibility,
        likes=like_ids,
        like_count=len(like_ids),
        liked=viewer_id in like_ids,
        comments=build_comment_list(post).comments,
        created_at=post.created_at,
        updated_at=post.updated_at
    )


class SocialService:
    """Posts, likes, comments and the friends feed"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.post_repo = PostRepository(db)
        self.friendship_repo = FriendshipRepository(db)

    async def _get_post(self, post_id: int):
        post = await self.post_repo.get_post_by_id(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    async def create_post(self, author: User, post_data: PostCreate) -> PostResponse:
        """Create a post; the payload is checked against its type's schema and stored as sent"""
        if post_data.type is None:
            raise ValidationError("Post type is required")

        content = (post_data.content or "").strip()
        if len(content) > POST_CONTENT_MAX_LENGTH:
            raise ValidationError(f"Post content must be at most {POST_CONTENT_MAX_LENGTH} characters")

        data = post_data.data or {}
        try:
            POST_PAYLOADS[post_data.type].model_validate(data)
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
            raise ValidationError(f"Invalid {post_data.type.value} data: {fields}")

        post = await self.post_repo.create_post(
            author.id,
            post_data.type.value,
            content,
            data,
            post_data.visibility.value
        )
        return PostResponse(post=build_post_response(post, author.id))

    async def delete_post(self, requester: User, post_id: int) -> Dict[str, str]:
        """Delete a post; only its author may do so"""
        post = await self._get_post(post_id)
        if post.user_id != requester.id:
            raise AuthorizationError("You can only delete your own posts")

        await self.post_repo.delete_post(post_id)
        logger.info(f"User {requester.id} deleted post {post_id}")
        return {"message": "Post deleted"}

    async def toggle_like(self, user: User, post_id: int) -> LikeResult:
        await self._get_post(post_id)
        count, liked = await self.post_repo.toggle_like(post_id, user.id)
        return LikeResult(likes=count, liked=liked)

    async def add_comment(self, user: User, post_id: int, text: Optional[str]) -> CommentList:
        text = clean_text(text, COMMENT_MAX_LENGTH, "Comment")
        await self._get_post(post_id)

        await self.post_repo.add_comment(post_id, user.id, text)
        return build_comment_list(await self._get_post(post_id))

    async def delete_comment(self, user: User, post_id: int, comment_id: int) -> CommentList:
        """Delete a comment; allowed for the comment's author and the post's author"""
        post = await self._get_post(post_id)
        comment = await self.post_repo.get_comment(post_id, comment_id)
        if not comment:
            raise NotFoundError("Comment not found")

        if user.id not in (comment.user_id, post.user_id):
            raise AuthorizationError("Not authorized to delete this comment")

        await self.post_repo.delete_comment(comment_id)
        logger.info(f"User {user.id} deleted comment {comment_id} on post {post_id}")
        return build_comment_list(await self._get_post(post_id))

    async def add_reply(self, user: User, post_id: int, comment_id: int, text: Optional[str]) -> CommentList:
        """Reply to a comment; anyone may reply"""
        text = clean_text(text, COMMENT_MAX_LENGTH, "Reply")
        await self._get_post(post_id)
        if not await self.post_repo.get_comment(post_id, comment_id):
            raise NotFoundError("Comment not found")

        await self.post_repo.add_reply(comment_id, user.id, text)
        return build_comment_list(await self._get_post(post_id))

    async def get_feed(self, viewer: User, page: int = 1, limit: Optional[int] = None) -> Feed:
        """Posts by the viewer and their friends, newest first"""
        page = max(page, 1)
        limit = limit or settings.FEED_PAGE_SIZE

        allowed_authors = [viewer.id] + await self.friendship_repo.get_friend_ids(viewer.id)
        posts, total = await self.post_repo.get_feed(allowed_authors, limit, (page - 1) * limit)

        return Feed(
            posts=[build_post_response(post, viewer.id) for post in posts],
            total=total,
            page=page,
            has_more=total > page * limit
        )
