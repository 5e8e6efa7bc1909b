from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from fitcircle.core.database import Base, utcnow


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(80), nullable=False)
    description = Column(String(200), nullable=True)
    emoji = Column(String(16), nullable=False, default="💪")
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[creator_id])
    members = relationship(
        "GroupMember",
        back_populates="group",
        order_by="GroupMember.joined_at",
        cascade="all, delete-orphan"
    )
    admins = relationship("GroupAdmin", back_populates="group", cascade="all, delete-orphan")


class GroupMember(Base):
    __tablename__ = "group_members"

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    group = relationship("Group", back_populates="members")
    user = relationship("User")


class GroupAdmin(Base):
    __tablename__ = "group_admins"

    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    group = relationship("Group", back_populates="admins")


class Message(Base):
    """A direct message (recipient set) or a group message (group set), never both"""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True)
    text = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    reads = relationship("MessageRead", back_populates="message", cascade="all, delete-orphan")

    # Indexes for efficient querying
    __table_args__ = (
        CheckConstraint(
            "(recipient_id IS NULL) <> (group_id IS NULL)",
            name="ck_message_direct_xor_group"
        ),
        Index('idx_message_dm_created', 'sender_id', 'recipient_id', 'created_at'),
        Index('idx_message_group_created', 'group_id', 'created_at'),
    )


class MessageRead(Base):
    __tablename__ = "message_reads"

    message_id = Column(Integer, ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    read_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    message = relationship("Message", back_populates="reads")
