from pydantic import BaseModel, ConfigDict, EmailStr
from datetime import datetime
from typing import List, Optional
from enum import Enum

from fitcircle.schemas.user import UserSummary


class FriendRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class UserSearchResult(UserSummary):
    is_friend: bool = False
    request_sent: bool = False


class UserSearchResults(BaseModel):
    users: List[UserSearchResult]


class FriendRequestCreate(BaseModel):
    email: EmailStr


class FriendRequestDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: FriendRequestStatus
    created_at: datetime
    updated_at: Optional[datetime] = None
    sender: UserSummary
    recipient: UserSummary


class FriendRequestSent(BaseModel):
    request: FriendRequestDetail
    message: str


class FriendRequestList(BaseModel):
    requests: List[FriendRequestDetail]


class FriendsList(BaseModel):
    friends: List[UserSummary]
    total_count: int
