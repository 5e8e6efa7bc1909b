from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import or_, and_, select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import List, Optional, Set

from fitcircle.models.friendship import Friendship, FriendRequest
from fitcircle.models.user import User
from fitcircle.schemas.friendship import FriendRequestStatus


class FriendshipRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    # Friend list
    async def get_friend_ids(self, user_id: int) -> List[int]:
        """Ids of the user's friends in the order they were added"""
        stmt = select(Friendship.friend_id).where(
            Friendship.user_id == user_id
        ).order_by(Friendship.created_at, Friendship.friend_id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_friends(self, user_id: int) -> List[User]:
        stmt = select(User).join(
            Friendship, Friendship.friend_id == User.id
        ).where(
            Friendship.user_id == user_id
        ).order_by(Friendship.created_at, User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def are_friends(self, user_id: int, other_id: int) -> bool:
        stmt = select(Friendship).where(
            and_(Friendship.user_id == user_id, Friendship.friend_id == other_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def remove_friendship(self, user_id: int, other_id: int) -> bool:
        """Delete both directions of a friendship in one statement"""
        stmt = delete(Friendship).where(
            or_(
                and_(Friendship.user_id == user_id, Friendship.friend_id == other_id),
                and_(Friendship.user_id == other_id, Friendship.friend_id == user_id)
            )
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    # Friend requests
    async def get_pending_between(self, user1_id: int, user2_id: int) -> Optional[FriendRequest]:
        """Pending request between two users in either direction"""
        stmt = select(FriendRequest).where(
            and_(
                FriendRequest.user_low_id == min(user1_id, user2_id),
                FriendRequest.user_high_id == max(user1_id, user2_id),
                FriendRequest.status == FriendRequestStatus.PENDING.value
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_friend_request(self, sender_id: int, recipient_id: int) -> Optional[FriendRequest]:
        """Create a pending request; None when the pending-pair index rejects it"""
        friend_request = FriendRequest(
            sender_id=sender_id,
            recipient_id=recipient_id,
            status=FriendRequestStatus.PENDING.value
        )
        try:
            self.db.add(friend_request)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return None
        return await self.get_friend_request(friend_request.id)

    async def get_friend_request(self, request_id: int) -> Optional[FriendRequest]:
        """Get a specific friend request by ID with both parties loaded"""
        stmt = select(FriendRequest).options(
            selectinload(FriendRequest.sender),
            selectinload(FriendRequest.recipient)
        ).where(FriendRequest.id == request_id).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def accept_friend_request(self, request_id: int, user_id: int) -> Optional[FriendRequest]:
        """Accept a pending request addressed to user_id and befriend both sides atomically"""
        try:
            result = await self.db.execute(
                update(FriendRequest).where(
                    and_(
                        FriendRequest.id == request_id,
                        FriendRequest.recipient_id == user_id,
                        FriendRequest.status == FriendRequestStatus.PENDING.value
                    )
                ).values(status=FriendRequestStatus.ACCEPTED.value)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                return None

            friend_request = await self.get_friend_request(request_id)
            pairs = [
                (friend_request.sender_id, friend_request.recipient_id),
                (friend_request.recipient_id, friend_request.sender_id),
            ]
            for owner_id, friend_id in pairs:
                if not await self.are_friends(owner_id, friend_id):
                    self.db.add(Friendship(user_id=owner_id, friend_id=friend_id))

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_friend_request(request_id)

    async def decline_friend_request(self, request_id: int, user_id: int) -> bool:
        """Decline a pending request addressed to user_id"""
        stmt = update(FriendRequest).where(
            and_(
                FriendRequest.id == request_id,
                FriendRequest.recipient_id == user_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value
            )
        ).values(status=FriendRequestStatus.DECLINED.value)
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount > 0

    async def get_incoming_requests(self, user_id: int) -> List[FriendRequest]:
        stmt = select(FriendRequest).options(
            selectinload(FriendRequest.sender),
            selectinload(FriendRequest.recipient)
        ).where(
            and_(
                FriendRequest.recipient_id == user_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value
            )
        ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_sent_requests(self, user_id: int) -> List[FriendRequest]:
        stmt = select(FriendRequest).options(
            selectinload(FriendRequest.sender),
            selectinload(FriendRequest.recipient)
        ).where(
            and_(
                FriendRequest.sender_id == user_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value
            )
        ).order_by(FriendRequest.created_at.desc(), FriendRequest.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_sent_pending_recipient_ids(self, user_id: int) -> Set[int]:
        stmt = select(FriendRequest.recipient_id).where(
            and_(
                FriendRequest.sender_id == user_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value
            )
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())
