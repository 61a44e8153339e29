from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import Order, OrderStatus

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_order_for_update(db: AsyncSession, order_id: int) -> Optional[Order]:
        """Row-locks the order until the surrounding transaction ends (no-op on SQLite)."""
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_by_code(db: AsyncSession, order_code: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.order_code == order_code))
        return result.scalars().first()

    @staticmethod
    async def code_exists(db: AsyncSession, order_code: str) -> bool:
        result = await db.execute(select(Order.id).where(Order.order_code == order_code))
        return result.first() is not None

    @staticmethod
    async def list_orders(db: AsyncSession, **filters) -> Sequence[Order]:
        """Orders matching column equality filters, newest first."""
        stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        for column, value in filters.items():
            stmt = stmt.where(getattr(Order, column) == value)
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def needing_assignment(db: AsyncSession, main_baker_id: int, limit: int = 20) -> Sequence[Order]:
        result = await db.execute(
            select(Order)
            .where(
                Order.main_baker_id == main_baker_id,
                Order.status == OrderStatus.PENDING,
                Order.junior_baker_id.is_(None),
            )
            .order_by(Order.deadline.asc().nulls_last(), Order.id)
            .limit(limit)
        )
        return result.scalars().all()
