"""
Keeps an order's chat participants in step with its customer and baker links.

Reconciliation is append-only: every currently linked user gets a row if
they have none, nobody is ever removed. A junior baker who is reassigned
away keeps their historical seat. Because it only inserts missing rows it
can be re-run at any time, which is the recovery path whenever a run fails
after the order itself was already updated.
"""
from typing import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.user_service.models import User, UserRole
from shared.config.database import atomic
from shared.exceptions import Forbidden, NotFound
from shared.observability import bakery_side_effect_failures_total

from .models import ChatParticipant, ParticipantRole
from .repository import ChatParticipantRepository

logger = structlog.get_logger(__name__)


def expected_participants(order: Order) -> list[tuple[int, ParticipantRole]]:
    links = [
        (order.customer_id, ParticipantRole.CUSTOMER),
        (order.main_baker_id, ParticipantRole.MAIN_BAKER),
        (order.junior_baker_id, ParticipantRole.JUNIOR_BAKER),
    ]
    return [(user_id, role) for user_id, role in links if user_id is not None]


class ChatParticipantSynchronizer:

    @staticmethod
    async def reconcile(
        db: AsyncSession, order_id: int, timeout: float | None = None
    ) -> Sequence[ChatParticipant]:
        async with atomic(db, timeout):
            order = await OrderRepository.get_order(db, order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")

            added = []
            for user_id, role in expected_participants(order):
                if await ChatParticipantRepository.add_if_absent(db, order_id, user_id, role):
                    added.append(user_id)

        if added:
            logger.info("chat_participants_added", order_id=order_id, user_ids=added)
        return await ChatParticipantRepository.list_for_order(db, order_id)

    @staticmethod
    async def list_participants(db: AsyncSession, order_id: int, actor: User) -> Sequence[ChatParticipant]:
        """Visible to admins and to anyone who ever held a seat in the chat."""
        if await OrderRepository.get_order(db, order_id) is None:
            raise NotFound(f"Order {order_id} not found")
        if actor.role != UserRole.ADMIN and not await ChatParticipantRepository.is_participant(
            db, order_id, actor.id
        ):
            raise Forbidden("You are not a participant in this chat")
        return await ChatParticipantRepository.list_for_order(db, order_id)


async def sync_participants(db: AsyncSession, order_id: int) -> bool:
    """
    Best-effort reconcile for callers that already committed an order change.

    Failures are logged and counted, never raised. Returns False on failure;
    the failed transaction has expired every instance loaded in `db`, so the
    caller must refresh what it still needs.
    """
    try:
        await ChatParticipantSynchronizer.reconcile(db, order_id)
        return True
    except Exception:
        logger.exception("chat_reconcile_failed", order_id=order_id)
        bakery_side_effect_failures_total.labels(effect="chat_reconcile").inc()
        return False
