from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.models import User, UserRole

from .models import BakerApplication, BakerTeam

class BakerTeamRepository:

    @staticmethod
    async def get_active_membership(db: AsyncSession, junior_baker_id: int) -> Optional[BakerTeam]:
        result = await db.execute(
            select(BakerTeam)
            .where(BakerTeam.junior_baker_id == junior_baker_id, BakerTeam.is_active.is_(True))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def deactivate_for_junior(db: AsyncSession, junior_baker_id: int) -> int:
        """Deactivates every active membership of the junior baker; returns how many."""
        result = await db.execute(
            update(BakerTeam)
            .where(BakerTeam.junior_baker_id == junior_baker_id, BakerTeam.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    @staticmethod
    async def create_membership(db: AsyncSession, membership: BakerTeam) -> BakerTeam:
        db.add(membership)
        await db.flush()
        return membership

    @staticmethod
    async def list_active_juniors(db: AsyncSession, main_baker_id: int) -> Sequence[User]:
        result = await db.execute(
            select(User)
            .join(BakerTeam, BakerTeam.junior_baker_id == User.id)
            .where(
                BakerTeam.main_baker_id == main_baker_id,
                BakerTeam.is_active.is_(True),
                User.role == UserRole.JUNIOR_BAKER,
            )
            .order_by(User.id)
        )
        return result.scalars().all()


class BakerApplicationRepository:

    @staticmethod
    async def create(db: AsyncSession, application: BakerApplication) -> BakerApplication:
        db.add(application)
        await db.flush()
        return application

    @staticmethod
    async def get_for_update(db: AsyncSession, application_id: int) -> Optional[BakerApplication]:
        result = await db.execute(
            select(BakerApplication)
            .where(BakerApplication.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def list_pending(db: AsyncSession, **filters) -> Sequence[BakerApplication]:
        stmt = select(BakerApplication).where(BakerApplication.status == "pending")
        for column, value in filters.items():
            stmt = stmt.where(getattr(BakerApplication, column) == value)
        result = await db.execute(stmt.order_by(BakerApplication.created_at, BakerApplication.id))
        return result.scalars().all()
