from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint, text
from sqlalchemy.orm import relationship

from fitcircle.core.database import Base, utcnow


class Friendship(Base):
    """One direction of a friendship; accepted requests always write both rows"""
    __tablename__ = "friendships"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="friendships")
    friend = relationship("User", foreign_keys=[friend_id])


class FriendRequest(Base):
    __tablename__ = "friend_requests"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String, nullable=False, default="pending")  # pending, accepted, declined

    # Unordered pair, smaller id first
    user_low_id = Column(Integer, nullable=False)
    user_high_id = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    # Constraints
    __table_args__ = (
        CheckConstraint("sender_id <> recipient_id", name="ck_friend_request_not_self"),
        Index(
            "uq_friend_requests_pending_pair",
            "user_low_id",
            "user_high_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.sender_id is not None and self.recipient_id is not None:
            self.user_low_id = min(self.sender_id, self.recipient_id)
            self.user_high_id = max(self.sender_id, self.recipient_id)
