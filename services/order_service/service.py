import secrets
from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.chat_service.synchronizer import sync_participants
from services.payment_service.schemas import DistributionOutcome
from services.payment_service.service import PaymentDistributionService
from services.user_service.models import User, UserRole
from services.user_service.repository import UserRepository
from shared.config.database import atomic
from shared.exceptions import Forbidden, NotFound, PersistenceConflict
from shared.observability import (
    bakery_order_transitions_total,
    bakery_side_effect_failures_total,
)

from .models import Order, OrderStatus
from .repository import OrderRepository
from .schemas import OrderCreate
from . import state_machine

logger = structlog.get_logger(__name__)

ORDER_CODE_PREFIX = "BB-ORD-"
_CODE_ATTEMPTS = 5


class OrderService:

    @staticmethod
    async def create_order(
        db: AsyncSession, customer: User, data: OrderCreate, timeout: float | None = None
    ) -> Order:
        """Checkout: a pending order owned by `customer`, optionally linked to a storefront's main baker."""
        customer_id = customer.id
        try:
            async with atomic(db, timeout):
                if data.main_baker_id is not None:
                    baker = await UserRepository.get_with_role(db, data.main_baker_id, UserRole.MAIN_BAKER)
                    if baker is None:
                        raise NotFound(f"Main baker {data.main_baker_id} not found")

                order = Order(
                    order_code=await OrderService._new_order_code(db),
                    customer_id=customer_id,
                    main_baker_id=data.main_baker_id,
                    status=OrderStatus.PENDING,
                    total_amount=data.total_amount,
                )
                await OrderRepository.create_order(db, order)
        except IntegrityError as e:
            # Another checkout took the same code between the lookup and the insert
            logger.warning("order_code_conflict", customer_id=customer_id, error=str(e.orig))
            raise PersistenceConflict("Order code was taken concurrently, retry checkout") from e

        logger.info("order_created", order_id=order.id, order_code=order.order_code)
        if not await sync_participants(db, order.id):
            await db.refresh(order)
        return order

    @staticmethod
    async def _new_order_code(db: AsyncSession) -> str:
        for _ in range(_CODE_ATTEMPTS):
            code = f"{ORDER_CODE_PREFIX}{100000 + secrets.randbelow(900000)}"
            if not await OrderRepository.code_exists(db, code):
                return code
        raise PersistenceConflict("Could not allocate a unique order code")

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int, actor: User) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        if not OrderService._can_view(order, actor):
            raise Forbidden("You are not a party to this order")
        return order

    @staticmethod
    async def get_order_by_code(db: AsyncSession, order_code: str) -> Order:
        order = await OrderRepository.get_by_code(db, order_code)
        if order is None:
            raise NotFound(f"Order {order_code} not found")
        return order

    @staticmethod
    async def list_orders(db: AsyncSession, actor: User) -> Sequence[Order]:
        if actor.role == UserRole.ADMIN:
            return await OrderRepository.list_orders(db)
        if actor.role == UserRole.MAIN_BAKER:
            return await OrderRepository.list_orders(db, main_baker_id=actor.id)
        if actor.role == UserRole.JUNIOR_BAKER:
            return await OrderRepository.list_orders(db, junior_baker_id=actor.id)
        return await OrderRepository.list_orders(db, customer_id=actor.id)

    @staticmethod
    async def orders_needing_assignment(db: AsyncSession, main_baker: User) -> Sequence[Order]:
        return await OrderRepository.needing_assignment(db, main_baker.id)

    @staticmethod
    async def update_status(
        db: AsyncSession,
        order_id: int,
        new_status: OrderStatus,
        actor: User,
        timeout: float | None = None,
    ) -> Order:
        """Bakers and admins walking an order along the status graph."""
        order = await OrderService._transition(
            db, order_id, new_status, timeout, lambda o: OrderService._can_progress(o, actor)
        )
        if order.status == OrderStatus.DELIVERED:
            await OrderService.settle_delivery(db, order)
        return order

    @staticmethod
    async def mark_delivered(
        db: AsyncSession, order_id: int, actor: User, timeout: float | None = None
    ) -> tuple[Order, Optional[DistributionOutcome]]:
        """
        The customer confirms delivery.

        The status change always stands on its own; payment distribution runs
        afterwards and its failure only shows up as a None outcome.
        """
        order = await OrderService._transition(
            db,
            order_id,
            OrderStatus.DELIVERED,
            timeout,
            lambda o: o.customer_id == actor.id or actor.role == UserRole.ADMIN,
        )
        outcome = await OrderService.settle_delivery(db, order)
        return order, outcome

    @staticmethod
    async def settle_delivery(db: AsyncSession, order: Order) -> Optional[DistributionOutcome]:
        order_id = order.id
        try:
            return await PaymentDistributionService.distribute(db, order_id)
        except Exception:
            # Retriable later through the admin DistributePayment endpoint
            logger.exception("payment_distribution_failed", order_id=order_id)
            bakery_side_effect_failures_total.labels(effect="payment_distribution").inc()
            # The failed transaction expired everything loaded in this session
            await db.refresh(order)
            return None

    @staticmethod
    async def _transition(db, order_id, new_status, timeout, allowed) -> Order:
        async with atomic(db, timeout):
            order = await OrderRepository.get_order_for_update(db, order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")
            if not allowed(order):
                raise Forbidden("You may not change the status of this order")
            previous = OrderStatus(order.status)
            state_machine.transition(order, new_status)

        bakery_order_transitions_total.labels(
            from_status=previous.value, to_status=OrderStatus(new_status).value
        ).inc()
        logger.info(
            "order_status_changed",
            order_id=order.id,
            from_status=previous.value,
            to_status=OrderStatus(new_status).value,
        )
        return order

    @staticmethod
    def _can_view(order: Order, actor: User) -> bool:
        return actor.role == UserRole.ADMIN or actor.id in (
            order.customer_id,
            order.main_baker_id,
            order.junior_baker_id,
        )

    @staticmethod
    def _can_progress(order: Order, actor: User) -> bool:
        if actor.role == UserRole.ADMIN:
            return True
        if actor.role == UserRole.MAIN_BAKER:
            return order.main_baker_id == actor.id
        if actor.role == UserRole.JUNIOR_BAKER:
            return order.junior_baker_id == actor.id
        return False
