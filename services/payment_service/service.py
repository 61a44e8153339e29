"""
Baker payment distribution.

When an order is delivered its revenue is split once between the bakers
who produced it:

    junior baker assigned  -> junior 70%, main baker 30%
    main baker took it     -> main baker 100%

Each leg is rounded half-up to cents on its own. The legs are not forced
to add back up to the rounded total; the stored amount of each leg is what
gets paid.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.order_service.models import OrderStatus
from services.order_service.repository import OrderRepository
from shared.config.database import atomic, utcnow
from shared.exceptions import NotFound, PersistenceConflict
from shared.observability import (
    bakery_payment_distribution_duration_seconds,
    bakery_payment_distributions_total,
)

from .models import BakerEarning, BakerType
from .repository import PaymentRepository
from .schemas import (
    BakerSummaryItem,
    DistributionOutcome,
    DistributionStatus,
    DistributionSummary,
    EarningLeg,
    EarningsBreakdownItem,
)

logger = structlog.get_logger(__name__)

JUNIOR_BAKER_PERCENTAGE = Decimal("70.00")
MAIN_BAKER_PERCENTAGE_WITH_JUNIOR = Decimal("30.00")
MAIN_BAKER_PERCENTAGE_SOLO = Decimal("100.00")

CENT = Decimal("0.01")


def to_cents(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def split_order_total(
    total_amount: Decimal, main_baker_id: int, junior_baker_id: Optional[int] = None
) -> List[EarningLeg]:
    total = to_cents(total_amount)

    if junior_baker_id is None:
        shares = [(main_baker_id, BakerType.MAIN_BAKER, MAIN_BAKER_PERCENTAGE_SOLO)]
    else:
        shares = [
            (junior_baker_id, BakerType.JUNIOR_BAKER, JUNIOR_BAKER_PERCENTAGE),
            (main_baker_id, BakerType.MAIN_BAKER, MAIN_BAKER_PERCENTAGE_WITH_JUNIOR),
        ]

    return [
        EarningLeg(
            baker_id=baker_id,
            baker_type=baker_type,
            amount=to_cents(total * percentage / 100),
            percentage=percentage,
        )
        for baker_id, baker_type, percentage in shares
    ]


class PaymentDistributionService:

    @staticmethod
    async def distribute(
        db: AsyncSession, order_id: int, timeout: float | None = None
    ) -> DistributionOutcome:
        """
        Splits a delivered order's revenue into baker earnings, exactly once.

        Safe to call any number of times: every call after the first one that
        succeeded returns ALREADY_DISTRIBUTED and writes nothing.
        """
        with bakery_payment_distribution_duration_seconds.time():
            try:
                outcome = await PaymentDistributionService._distribute(db, order_id, timeout)
            except IntegrityError as e:
                logger.warning("payment_distribution_conflict", order_id=order_id, error=str(e.orig))
                raise PersistenceConflict(
                    f"Payment for order {order_id} was recorded concurrently"
                ) from e

        bakery_payment_distributions_total.labels(outcome=outcome.status.value).inc()
        if outcome.applied:
            logger.info(
                "payment_distributed",
                order_id=order_id,
                total=str(outcome.summary.total_amount),
                legs={leg.baker_type.value: str(leg.amount) for leg in outcome.summary.legs},
            )
        else:
            logger.info("payment_distribution_skipped", order_id=order_id, reason=outcome.status.value)
        return outcome

    @staticmethod
    async def _distribute(db: AsyncSession, order_id: int, timeout: float | None) -> DistributionOutcome:
        async with atomic(db, timeout):
            order = await OrderRepository.get_order(db, order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")

            if order.status != OrderStatus.DELIVERED:
                return DistributionOutcome(order_id=order_id, status=DistributionStatus.NOT_DELIVERED)
            if order.main_baker_id is None:
                return DistributionOutcome(order_id=order_id, status=DistributionStatus.NO_MAIN_BAKER)

            total = to_cents(order.total_amount)
            distributed_at = utcnow()
            if not await PaymentRepository.claim_distribution(db, order_id, total, distributed_at):
                return DistributionOutcome(order_id=order_id, status=DistributionStatus.ALREADY_DISTRIBUTED)

            legs = split_order_total(total, order.main_baker_id, order.junior_baker_id)
            for leg in legs:
                await PaymentRepository.add_earning(
                    db,
                    BakerEarning(
                        order_id=order_id,
                        baker_id=leg.baker_id,
                        baker_type=leg.baker_type.value,
                        amount=leg.amount,
                        percentage=leg.percentage,
                        created_at=distributed_at,
                    ),
                )

        return DistributionOutcome(
            order_id=order_id,
            status=DistributionStatus.DISTRIBUTED,
            summary=DistributionSummary(
                order_id=order_id,
                total_amount=total,
                legs=legs,
                distributed_at=distributed_at,
            ),
        )

    @staticmethod
    async def total_earnings(db: AsyncSession, baker_id: int) -> Decimal:
        return to_cents(await PaymentRepository.total_for_baker(db, baker_id))

    @staticmethod
    async def earnings_breakdown(db: AsyncSession, baker_id: int) -> List[EarningsBreakdownItem]:
        rows = await PaymentRepository.breakdown_for_baker(db, baker_id)
        return [EarningsBreakdownItem.model_validate(dict(row)) for row in rows]

    @staticmethod
    async def all_bakers_summary(db: AsyncSession) -> List[BakerSummaryItem]:
        rows = await PaymentRepository.summary_by_baker(db)
        return [
            BakerSummaryItem(
                baker_id=row["baker_id"],
                baker_name=row["baker_name"],
                baker_type=row["baker_type"],
                total_earnings=to_cents(row["total_earnings"]),
                order_count=row["order_count"],
            )
            for row in rows
        ]

    @staticmethod
    async def distribution_for_order(db: AsyncSession, order_id: int) -> DistributionSummary:
        distribution = await PaymentRepository.get_distribution(db, order_id)
        if distribution is None:
            raise NotFound(f"Order {order_id} has no payment distribution")
        earnings = await PaymentRepository.earnings_for_order(db, order_id)
        return DistributionSummary(
            order_id=order_id,
            total_amount=distribution.total_amount,
            legs=[
                EarningLeg(
                    baker_id=e.baker_id,
                    baker_type=BakerType(e.baker_type),
                    amount=e.amount,
                    percentage=e.percentage,
                )
                for e in earnings
            ],
            distributed_at=distribution.distributed_at,
        )
