from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional, Dict, Any
from enum import Enum

from fitcircle.schemas.user import UserSummary

MESSAGE_MAX_LENGTH = 1000
GROUP_NAME_MAX_LENGTH = 80
GROUP_DESCRIPTION_MAX_LENGTH = 200
GROUP_EMOJI_MAX_LENGTH = 16
DEFAULT_GROUP_EMOJI = "💪"


class WebSocketEventType(str, Enum):
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    DIRECT_MESSAGE = "direct_message"
    GROUP_MESSAGE = "group_message"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"


# Base User Schema for Chat
class ChatUser(BaseModel):
    id: int
    name: str
    is_premium: bool = False


# Message Schemas
class MessageCreate(BaseModel):
    text: str


class Message(BaseModel):
    id: int
    sender_id: int
    recipient_id: Optional[int] = None
    group_id: Optional[int] = None
    text: str
    read_by: List[int] = []
    created_at: datetime
    sender: ChatUser


class MessageResponse(BaseModel):
    message: Message


class MessageList(BaseModel):
    messages: List[Message]


# Direct conversations
class Conversation(BaseModel):
    user: UserSummary
    last_message: Optional[Message] = None
    unread: int = 0


class ConversationList(BaseModel):
    conversations: List[Conversation]


# Group Schemas
class GroupCreate(BaseModel):
    name: str
    description: Optional[str] = None
    emoji: Optional[str] = Field(None, max_length=GROUP_EMOJI_MAX_LENGTH)
    member_ids: List[int] = []


class Group(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    emoji: str = DEFAULT_GROUP_EMOJI
    creator: ChatUser
    members: List[ChatUser]
    admin_ids: List[int]
    created_at: datetime
    updated_at: Optional[datetime] = None


class GroupResponse(BaseModel):
    group: Group


class GroupList(BaseModel):
    groups: List[Group]


class GroupThread(BaseModel):
    messages: List[Message]
    group: Group


# WebSocket Schemas
class IncomingEvent(BaseModel):
    type: WebSocketEventType
    data: Dict[str, Any] = {}
