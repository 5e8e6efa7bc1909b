from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship

from fitcircle.core.database import Base, utcnow


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False)  # weight_update, meal_plan, custom_meal, calorie_log, workout_log, progress_update
    content = Column(String(500), nullable=False, default="")
    data = Column(JSON, nullable=False, default=dict)
    visibility = Column(String, nullable=False, default="friends")  # friends, public

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    author = relationship("User", foreign_keys=[user_id])
    likes = relationship(
        "PostLike",
        back_populates="post",
        order_by="PostLike.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    comments = relationship(
        "PostComment",
        back_populates="post",
        order_by="PostComment.id",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    __table_args__ = (
        Index('idx_post_user_created', 'user_id', 'created_at'),
    )


class PostLike(Base):
    __tablename__ = "post_likes"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    post = relationship("Post", back_populates="likes")


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(String(300), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    post = relationship("Post", back_populates="comments")
    author = relationship("User", foreign_keys=[user_id])
    replies = relationship(
        "CommentReply",
        back_populates="comment",
        order_by="CommentReply.id",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class CommentReply(Base):
    __tablename__ = "comment_replies"

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("post_comments.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(String(300), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    comment = relationship("PostComment", back_populates="replies")
    author = relationship("User", foreign_keys=[user_id])
