from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, delete, desc, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from datetime import timedelta
from typing import List, Optional

from fitcircle.core.database import utcnow
from fitcircle.models.chat import Group, GroupMember, GroupAdmin


class GroupRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_group(
        self,
        creator_id: int,
        name: str,
        member_ids: List[int],
        description: Optional[str] = None,
        emoji: Optional[str] = None
    ) -> Group:
        """Create a group; the creator is its first member and only admin"""
        group = Group(
            name=name,
            description=description,
            emoji=emoji,
            creator_id=creator_id
        )
        self.db.add(group)
        await self.db.flush()  # Get the ID without committing

        # Creator first, then the other members in the given order
        all_members = [creator_id]
        for user_id in member_ids:
            if user_id not in all_members:
                all_members.append(user_id)

        # Distinct join times keep the creator first in member order
        joined_at = utcnow()
        for position, user_id in enumerate(all_members):
            self.db.add(GroupMember(
                group_id=group.id,
                user_id=user_id,
                joined_at=joined_at + timedelta(microseconds=position)
            ))
        self.db.add(GroupAdmin(group_id=group.id, user_id=creator_id))

        await self.db.commit()
        return await self.get_group_by_id(group.id)

    async def get_group_by_id(self, group_id: int) -> Optional[Group]:
        """Get group with creator, members and admins loaded"""
        stmt = select(Group).options(
            selectinload(Group.creator),
            selectinload(Group.members).selectinload(GroupMember.user),
            selectinload(Group.admins)
        ).where(Group.id == group_id).execution_options(populate_existing=True)

        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_groups(self, user_id: int) -> List[Group]:
        """Groups the user belongs to, most recently updated first"""
        stmt = select(Group).join(
            GroupMember, GroupMember.group_id == Group.id
        ).options(
            selectinload(Group.creator),
            selectinload(Group.members).selectinload(GroupMember.user),
            selectinload(Group.admins)
        ).where(
            GroupMember.user_id == user_id
        ).order_by(desc(Group.updated_at), desc(Group.id))

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def is_member(self, user_id: int, group_id: int) -> bool:
        """Check if user is a member of the group"""
        stmt = select(GroupMember).where(
            and_(
                GroupMember.user_id == user_id,
                GroupMember.group_id == group_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    # Member Management
    async def add_member(self, group_id: int, user_id: int) -> bool:
        """Add a member; False when they already belong to the group"""
        if await self.is_member(user_id, group_id):
            return False

        try:
            self.db.add(GroupMember(group_id=group_id, user_id=user_id))
            await self.db.execute(
                update(Group).where(Group.id == group_id).values(updated_at=utcnow())
            )
            await self.db.commit()
        except IntegrityError:
            # Joined concurrently
            await self.db.rollback()
            return False
        return True

    async def remove_member(self, group_id: int, user_id: int) -> bool:
        """Remove a member; False when they were not in the group"""
        result = await self.db.execute(
            delete(GroupMember).where(
                and_(
                    GroupMember.group_id == group_id,
                    GroupMember.user_id == user_id
                )
            )
        )
        if result.rowcount > 0:
            await self.db.execute(
                update(Group).where(Group.id == group_id).values(updated_at=utcnow())
            )
        await self.db.commit()
        return result.rowcount > 0
