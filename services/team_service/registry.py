"""
Baker team registry.

A junior baker belongs to at most one main baker's team at a time. Moving
a junior baker deactivates the old membership and creates a new one;
promoting them to main baker removes them from every team. The `apply_*`
helpers only flush so that application review can run them inside its own
transaction; the public methods wrap them in one. Both paths lock the junior
baker's user row first, so a promotion and a team move never interleave.
"""
from typing import Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.models import User, UserRole
from services.user_service.repository import UserRepository
from shared.config.database import atomic, utcnow
from shared.exceptions import InvalidRequest, NotFound, PersistenceConflict
from shared.observability import bakery_team_changes_total

from .models import BakerTeam
from .repository import BakerTeamRepository

logger = structlog.get_logger(__name__)


class BakerTeamRegistry:

    @staticmethod
    async def assign(
        db: AsyncSession, main_baker_id: int, junior_baker_id: int, timeout: float | None = None
    ) -> BakerTeam:
        try:
            async with atomic(db, timeout):
                membership = await BakerTeamRegistry.apply_assignment(db, main_baker_id, junior_baker_id)
        except IntegrityError as e:
            logger.warning("team_assignment_conflict", junior_baker_id=junior_baker_id, error=str(e.orig))
            raise PersistenceConflict(
                f"Junior baker {junior_baker_id} was placed on another team concurrently"
            ) from e
        return membership

    @staticmethod
    async def apply_assignment(db: AsyncSession, main_baker_id: int, junior_baker_id: int) -> BakerTeam:
        if await UserRepository.get_with_role(db, main_baker_id, UserRole.MAIN_BAKER) is None:
            raise NotFound(f"Main baker {main_baker_id} not found")
        junior = await UserRepository.get_for_update(db, junior_baker_id)
        if junior is None or junior.role != UserRole.JUNIOR_BAKER:
            raise NotFound(f"Junior baker {junior_baker_id} not found")

        current = await BakerTeamRepository.get_active_membership(db, junior_baker_id)
        if current is not None and current.main_baker_id == main_baker_id:
            return current

        moved = await BakerTeamRepository.deactivate_for_junior(db, junior_baker_id)
        membership = await BakerTeamRepository.create_membership(
            db,
            BakerTeam(
                main_baker_id=main_baker_id,
                junior_baker_id=junior_baker_id,
                assigned_at=utcnow(),
                is_active=True,
            ),
        )
        bakery_team_changes_total.labels(change="moved" if moved else "joined").inc()
        logger.info(
            "junior_baker_assigned",
            main_baker_id=main_baker_id,
            junior_baker_id=junior_baker_id,
            previous_team=current.main_baker_id if current else None,
        )
        return membership

    @staticmethod
    async def promote(db: AsyncSession, junior_baker_id: int, timeout: float | None = None) -> User:
        async with atomic(db, timeout):
            user = await BakerTeamRegistry.apply_promotion(db, junior_baker_id)
        return user

    @staticmethod
    async def apply_promotion(db: AsyncSession, junior_baker_id: int) -> User:
        # Same lock as apply_assignment: a team move cannot slip in after the role check
        user = await UserRepository.get_for_update(db, junior_baker_id)
        if user is None:
            raise NotFound(f"User {junior_baker_id} not found")
        if user.role != UserRole.JUNIOR_BAKER:
            raise InvalidRequest(f"User {junior_baker_id} is not a junior baker")

        await UserRepository.set_role(db, user, UserRole.MAIN_BAKER)
        await BakerTeamRepository.deactivate_for_junior(db, junior_baker_id)

        bakery_team_changes_total.labels(change="promoted").inc()
        logger.info("junior_baker_promoted", user_id=junior_baker_id)
        return user

    @staticmethod
    async def list_team(db: AsyncSession, main_baker_id: int) -> Sequence[User]:
        return await BakerTeamRepository.list_active_juniors(db, main_baker_id)

    @staticmethod
    async def active_membership(db: AsyncSession, junior_baker_id: int) -> BakerTeam | None:
        return await BakerTeamRepository.get_active_membership(db, junior_baker_id)
