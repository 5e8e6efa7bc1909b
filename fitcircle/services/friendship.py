import logging
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List

from fitcircle.core.config import settings
from fitcircle.core.websocket import connection_manager
from fitcircle.repositories.friendship import FriendshipRepository
from fitcircle.repositories.user import UserRepository
from fitcircle.schemas.chat import WebSocketEventType
from fitcircle.schemas.friendship import (
    UserSearchResult, FriendsList, FriendRequestDetail, FriendRequestList, FriendRequestSent
)
from fitcircle.schemas.user import UserSummary
from fitcircle.models.user import User
from fitcircle.utils.exceptions import (
    NotFoundError, SelfRequestError, AlreadyFriendsError, DuplicatePendingError
)

logger = logging.getLogger(__name__)

SEARCH_MIN_LENGTH = 2


class FriendshipService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = FriendshipRepository(db)
        self.user_repo = UserRepository(db)

    async def search_users(self, query: str, current_user: User, min_length: int = SEARCH_MIN_LENGTH) -> List[UserSearchResult]:
        """Search users by name or email and annotate friendship state"""
        query = (query or "").strip()
        if len(query) < min_length:
            return []

        users = await self.user_repo.search(query, current_user.id, settings.SEARCH_RESULT_LIMIT)
        friend_ids = set(await self.repo.get_friend_ids(current_user.id))
        sent_ids = await self.repo.get_sent_pending_recipient_ids(current_user.id)

        return [
            UserSearchResult(
                id=user.id,
                name=user.name,
                email=user.email,
                is_premium=user.is_premium,
                is_friend=user.id in friend_ids,
                request_sent=user.id in sent_ids
            )
            for user in users
        ]

    async def send_friend_request(self, sender: User, recipient_email: str) -> FriendRequestSent:
        """Send a friend request to the user registered under recipient_email"""
        recipient = await self.user_repo.get_by_email(recipient_email)
        if not recipient:
            raise NotFoundError("No user found with that email")

        if recipient.id == sender.id:
            raise SelfRequestError("You cannot add yourself")

        if await self.repo.are_friends(sender.id, recipient.id):
            raise AlreadyFriendsError("You are already friends!")

        if await self.repo.get_pending_between(sender.id, recipient.id):
            raise DuplicatePendingError("A friend request already exists")

        # The pending-pair index settles concurrent submissions the pre-check missed
        friend_request = await self.repo.create_friend_request(sender.id, recipient.id)
        if not friend_request:
            raise DuplicatePendingError("A friend request already exists")

        logger.info(f"User {sender.id} sent friend request {friend_request.id} to user {recipient.id}")

        detail = FriendRequestDetail.model_validate(friend_request)
        await connection_manager.notify(
            [recipient.id], WebSocketEventType.FRIEND_REQUEST, {"request": detail.model_dump(mode="json")}
        )

        return FriendRequestSent(request=detail, message=f"Friend request sent to {recipient.name}!")

    async def accept_friend_request(self, recipient: User, request_id: int) -> Dict[str, str]:
        """Accept a pending request and befriend both users"""
        friend_request = await self.repo.accept_friend_request(request_id, recipient.id)
        if not friend_request:
            raise NotFoundError("Request not found")

        logger.info(f"User {recipient.id} accepted friend request {request_id} from user {friend_request.sender_id}")

        await connection_manager.notify(
            [friend_request.sender_id],
            WebSocketEventType.FRIEND_ACCEPTED,
            {"request_id": friend_request.id, "friend": UserSummary.model_validate(recipient).model_dump()}
        )

        return {"message": "Friend added!"}

    async def decline_friend_request(self, recipient: User, request_id: int) -> Dict[str, str]:
        """Decline a pending request; unknown ids are ignored"""
        if await self.repo.decline_friend_request(request_id, recipient.id):
            logger.info(f"User {recipient.id} declined friend request {request_id}")
        return {"message": "Request declined"}

    async def remove_friend(self, current_user: User, friend_id: int) -> Dict[str, str]:
        """Remove friendship in both directions"""
        if await self.repo.remove_friendship(current_user.id, friend_id):
            logger.info(f"User {current_user.id} removed friend {friend_id}")
        return {"message": "Friend removed"}

    async def get_friends_list(self, user: User) -> FriendsList:
        """Get list of user's friends"""
        friends = await self.repo.get_friends(user.id)
        return FriendsList(
            friends=[UserSummary.model_validate(friend) for friend in friends],
            total_count=len(friends)
        )

    async def get_incoming_requests(self, user: User) -> FriendRequestList:
        requests = await self.repo.get_incoming_requests(user.id)
        return FriendRequestList(requests=[FriendRequestDetail.model_validate(req) for req in requests])

    async def get_sent_requests(self, user: User) -> FriendRequestList:
        requests = await self.repo.get_sent_requests(user.id)
        return FriendRequestList(requests=[FriendRequestDetail.model_validate(req) for req in requests])
