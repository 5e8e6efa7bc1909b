from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import Any, Dict, List, Optional, Tuple

from fitcircle.models.post import Post, PostLike, PostComment, CommentReply


class PostRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_tree(self, stmt):
        return stmt.options(
            selectinload(Post.author),
            selectinload(Post.likes),
            selectinload(Post.comments).selectinload(PostComment.author),
            selectinload(Post.comments).selectinload(PostComment.replies).selectinload(CommentReply.author)
        ).execution_options(populate_existing=True)

    # Post Management
    async def create_post(
        self,
        user_id: int,
        post_type: str,
        content: str,
        data: Dict[str, Any],
        visibility: str
    ) -> Post:
        post = Post(
            user_id=user_id,
            type=post_type,
            content=content,
            data=data,
            visibility=visibility
        )
        self.db.add(post)
        await self.db.commit()
        return await self.get_post_by_id(post.id)

    async def get_post_by_id(self, post_id: int) -> Optional[Post]:
        """Get post with author, likes and the full comment tree"""
        stmt = self._with_tree(select(Post).where(Post.id == post_id))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_feed(self, author_ids: List[int], limit: int = 20, offset: int = 0) -> Tuple[List[Post], int]:
        """Posts by any of author_ids, newest first, with total count"""
        stmt = self._with_tree(
            select(Post).where(Post.user_id.in_(author_ids))
        ).order_by(desc(Post.created_at), desc(Post.id)).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        posts = list(result.scalars().all())

        count_stmt = select(func.count(Post.id)).where(Post.user_id.in_(author_ids))
        count_result = await self.db.execute(count_stmt)
        total_count = count_result.scalar() or 0

        return posts, total_count

    async def delete_post(self, post_id: int) -> bool:
        """Delete a post together with its likes, comments and replies"""
        comment_ids = select(PostComment.id).where(PostComment.post_id == post_id)
        for stmt in (
            delete(CommentReply).where(CommentReply.comment_id.in_(comment_ids)),
            delete(PostComment).where(PostComment.post_id == post_id),
            delete(PostLike).where(PostLike.post_id == post_id),
        ):
            await self.db.execute(stmt.execution_options(synchronize_session=False))
        result = await self.db.execute(
            delete(Post).where(Post.id == post_id).execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0

    # Likes
    async def toggle_like(self, post_id: int, user_id: int) -> Tuple[int, bool]:
        """Remove the like if present, otherwise add it. Returns (count, liked)"""
        removed = await self.db.execute(
            delete(PostLike).where(
                and_(PostLike.post_id == post_id, PostLike.user_id == user_id)
            )
        )
        if removed.rowcount > 0:
            await self.db.commit()
            liked = False
        else:
            try:
                self.db.add(PostLike(post_id=post_id, user_id=user_id))
                await self.db.commit()
            except IntegrityError:
                # Same user liked concurrently; the set already holds them
                await self.db.rollback()
            liked = True

        count_stmt = select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        count = (await self.db.execute(count_stmt)).scalar() or 0
        return count, liked

    # Comments
    async def get_comment(self, post_id: int, comment_id: int) -> Optional[PostComment]:
        stmt = select(PostComment).where(
            and_(PostComment.id == comment_id, PostComment.post_id == post_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def add_comment(self, post_id: int, user_id: int, text: str) -> PostComment:
        comment = PostComment(post_id=post_id, user_id=user_id, text=text)
        self.db.add(comment)
        await self.db.commit()
        return comment

    async def delete_comment(self, comment_id: int) -> bool:
        """Delete a comment and its replies"""
        await self.db.execute(
            delete(CommentReply).where(CommentReply.comment_id == comment_id).execution_options(synchronize_session=False)
        )
        result = await self.db.execute(
            delete(PostComment).where(PostComment.id == comment_id).execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def add_reply(self, comment_id: int, user_id: int, text: str) -> CommentReply:
        reply = CommentReply(comment_id=comment_id, user_id=user_id, text=text)
        self.db.add(reply)
        await self.db.commit()
        return reply
