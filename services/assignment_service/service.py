"""
Order assignment by the order's main baker.

    assign_to_junior -> junior_baker_id set, status re-asserted to pending
    take_self        -> junior_baker_id cleared, status processing

The order row is locked for the whole decision so two racing assignments
serialize; whichever commits last wins and no reader ever sees a junior
baker on a self-handled order. Chat reconciliation and the customer
notification run after the commit and can only fail softly.
"""
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.chat_service.notifier import post_system_message
from services.chat_service.synchronizer import sync_participants
from services.order_service.models import Order, OrderStatus
from services.order_service.repository import OrderRepository
from services.team_service.registry import BakerTeamRegistry
from services.user_service.models import User, UserRole
from services.user_service.repository import UserRepository
from shared.config.database import atomic, utcnow
from shared.exceptions import Forbidden, InvalidTransition, NotFound
from shared.observability import bakery_assignments_total

from .schemas import AssignmentResult

logger = structlog.get_logger(__name__)

ASSIGNABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

MODE_JUNIOR = "junior_baker"
MODE_SELF = "self"


class AssignmentService:

    @staticmethod
    async def assign_to_junior(
        db: AsyncSession,
        order_id: int,
        junior_baker_id: int,
        main_baker_id: int,
        deadline: Optional[datetime] = None,
        timeout: float | None = None,
    ) -> AssignmentResult:
        async with atomic(db, timeout):
            order = await AssignmentService._lock_assignable(db, order_id, main_baker_id, OrderStatus.PENDING)

            # Held until commit so a team move or promotion cannot land between check and write
            junior = await UserRepository.get_for_update(db, junior_baker_id)
            if junior is None or junior.role != UserRole.JUNIOR_BAKER:
                raise NotFound(f"Junior baker {junior_baker_id} not found")
            membership = await BakerTeamRegistry.active_membership(db, junior_baker_id)
            if membership is None or membership.main_baker_id != main_baker_id:
                raise Forbidden(f"Junior baker {junior_baker_id} is not on your team")

            order.junior_baker_id = junior_baker_id
            AssignmentService._apply(order, OrderStatus.PENDING, deadline)

        message = f"Your order {order.order_code} has been assigned to {junior.full_name}."
        return await AssignmentService._after_commit(db, order, MODE_JUNIOR, message)

    @staticmethod
    async def take_self(
        db: AsyncSession,
        order_id: int,
        main_baker_id: int,
        deadline: Optional[datetime] = None,
        timeout: float | None = None,
    ) -> AssignmentResult:
        async with atomic(db, timeout):
            order = await AssignmentService._lock_assignable(
                db, order_id, main_baker_id, OrderStatus.PROCESSING
            )
            order.junior_baker_id = None
            AssignmentService._apply(order, OrderStatus.PROCESSING, deadline)

        message = f"Your order {order.order_code} is now being prepared by our main baker."
        return await AssignmentService._after_commit(db, order, MODE_SELF, message)

    @staticmethod
    async def _lock_assignable(
        db: AsyncSession, order_id: int, main_baker_id: int, target: OrderStatus
    ) -> Order:
        order = await OrderRepository.get_order_for_update(db, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        if order.main_baker_id is None or order.main_baker_id != main_baker_id:
            raise Forbidden("Only the order's main baker can assign it")
        if order.status not in ASSIGNABLE_STATES:
            raise InvalidTransition(
                order.status,
                target,
                f"Order {order_id} is {OrderStatus(order.status).value} and can no longer be assigned",
            )
        return order

    @staticmethod
    def _apply(order: Order, status: OrderStatus, deadline: Optional[datetime]) -> None:
        order.status = status
        if deadline is not None:
            order.deadline = deadline
        order.updated_at = utcnow()

    @staticmethod
    async def _after_commit(db: AsyncSession, order: Order, mode: str, message: str) -> AssignmentResult:
        bakery_assignments_total.labels(mode=mode).inc()
        logger.info(
            "order_assigned",
            order_id=order.id,
            mode=mode,
            main_baker_id=order.main_baker_id,
            junior_baker_id=order.junior_baker_id,
        )

        synced = await sync_participants(db, order.id)
        if not synced:
            await db.refresh(order)
        notified = await post_system_message(order.id, order.customer_id, message)

        return AssignmentResult(
            order_id=order.id,
            order_code=order.order_code,
            mode=mode,
            junior_baker_id=order.junior_baker_id,
            status=order.status,
            deadline=order.deadline,
            participants_synced=synced,
            notified=notified,
        )
