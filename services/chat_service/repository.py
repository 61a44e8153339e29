from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import insert_ignore, utcnow
from .models import ChatParticipant, ParticipantRole

class ChatParticipantRepository:

    @staticmethod
    async def add_if_absent(
        db: AsyncSession, order_id: int, user_id: int, role: ParticipantRole
    ) -> bool:
        """Insert-or-ignore on (order_id, user_id). True when a row was added."""
        stmt = (
            insert_ignore(db, ChatParticipant)
            .values(order_id=order_id, user_id=user_id, role=role.value, joined_at=utcnow())
            .returning(ChatParticipant.id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_for_order(db: AsyncSession, order_id: int) -> Sequence[ChatParticipant]:
        result = await db.execute(
            select(ChatParticipant)
            .where(ChatParticipant.order_id == order_id)
            .order_by(ChatParticipant.id)
        )
        return result.scalars().all()

    @staticmethod
    async def is_participant(db: AsyncSession, order_id: int, user_id: int) -> bool:
        result = await db.execute(
            select(ChatParticipant.id).where(
                ChatParticipant.order_id == order_id,
                ChatParticipant.user_id == user_id,
            )
        )
        return result.first() is not None
