from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_, func, update
from sqlalchemy.exc import IntegrityError

from fitcircle.models.user import User
from fitcircle.models.friendship import Friendship
from fitcircle.core.security import get_password_hash


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, name: str, email: str, password: str) -> Optional[User]:
        """Create a new user, None when the email is taken"""
        try:
            db_user = User(
                name=name,
                email=email,
                hashed_password=get_password_hash(password),
                is_premium=False
            )
            self.db.add(db_user)
            await self.db.commit()
            await self.db.refresh(db_user)
            return db_user
        except IntegrityError:
            await self.db.rollback()
            return None

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        query = select(User).filter(User.id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        query = select(User).filter(User.email == email.strip().lower())
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, user_ids: List[int]) -> List[User]:
        if not user_ids:
            return []
        query = select(User).where(User.id.in_(user_ids))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def search(self, query: str, exclude_user_id: int, limit: int = 10) -> List[User]:
        """Case-insensitive substring search over name and email"""
        stmt = select(User).where(
            and_(
                User.id != exclude_user_id,
                or_(
                    User.name.icontains(query, autoescape=True),
                    User.email.icontains(query, autoescape=True)
                )
            )
        ).order_by(User.name, User.id).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_friends(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(Friendship).where(Friendship.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def set_premium(self, user_id: int, is_premium: bool = True) -> Optional[User]:
        """Toggle the premium flag"""
        await self.db.execute(
            update(User).where(User.id == user_id).values(is_premium=is_premium)
        )
        await self.db.commit()
        user = await self.get_by_id(user_id)
        if user:
            await self.db.refresh(user)
        return user
