from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import Order
from services.user_service.models import User
from shared.config.database import insert_ignore

from .models import BakerEarning, PaymentDistribution

class PaymentRepository:
    @staticmethod
    async def claim_distribution(
        db: AsyncSession, order_id: int, total_amount: Decimal, distributed_at: datetime
    ) -> bool:
        """Atomically inserts the order's distribution header. False if it already exists."""
        stmt = (
            insert_ignore(db, PaymentDistribution)
            .values(order_id=order_id, total_amount=total_amount, distributed_at=distributed_at)
            .returning(PaymentDistribution.order_id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def add_earning(db: AsyncSession, earning: BakerEarning) -> BakerEarning:
        db.add(earning)
        await db.flush()
        return earning

    @staticmethod
    async def get_distribution(db: AsyncSession, order_id: int) -> Optional[PaymentDistribution]:
        result = await db.execute(
            select(PaymentDistribution).where(PaymentDistribution.order_id == order_id)
        )
        return result.scalars().first()

    @staticmethod
    async def earnings_for_order(db: AsyncSession, order_id: int) -> Sequence[BakerEarning]:
        result = await db.execute(
            select(BakerEarning).where(BakerEarning.order_id == order_id).order_by(BakerEarning.id)
        )
        return result.scalars().all()

    @staticmethod
    async def total_for_baker(db: AsyncSession, baker_id: int) -> Decimal:
        result = await db.execute(
            select(func.coalesce(func.sum(BakerEarning.amount), 0)).where(
                BakerEarning.baker_id == baker_id
            )
        )
        return Decimal(result.scalar_one())

    @staticmethod
    async def breakdown_for_baker(db: AsyncSession, baker_id: int):
        result = await db.execute(
            select(
                BakerEarning.order_id,
                BakerEarning.amount,
                BakerEarning.percentage,
                BakerEarning.baker_type,
                BakerEarning.created_at,
                Order.order_code,
                Order.total_amount.label("order_total"),
            )
            .outerjoin(Order, BakerEarning.order_id == Order.id)
            .where(BakerEarning.baker_id == baker_id)
            .order_by(BakerEarning.created_at, BakerEarning.id)
        )
        return result.mappings().all()

    @staticmethod
    async def summary_by_baker(db: AsyncSession):
        result = await db.execute(
            select(
                BakerEarning.baker_id,
                User.full_name.label("baker_name"),
                BakerEarning.baker_type,
                func.sum(BakerEarning.amount).label("total_earnings"),
                func.count(BakerEarning.order_id).label("order_count"),
            )
            .outerjoin(User, BakerEarning.baker_id == User.id)
            .group_by(BakerEarning.baker_id, User.full_name, BakerEarning.baker_type)
            .order_by(BakerEarning.baker_id, BakerEarning.baker_type)
        )
        return result.mappings().all()
