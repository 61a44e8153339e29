from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User, UserRole


class UserRepository:

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_with_role(db: AsyncSession, user_id: int, role: UserRole) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.id == user_id, User.role == role)
        )
        return result.scalars().first()

    @staticmethod
    async def get_for_update(db: AsyncSession, user_id: int) -> Optional[User]:
        """Row-locks the user until the surrounding transaction ends. Role changes and team moves serialize on it."""
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def set_role(db: AsyncSession, user: User, role: UserRole) -> User:
        user.role = role
        await db.flush()
        return user
