from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.dependencies import get_acting_user, require_roles
from services.user_service.models import User, UserRole
from shared.config.database import get_db
from shared.exceptions import Forbidden
from shared.security import DISTRIBUTE_RATE_LIMIT, limiter

from .schemas import (
    BakerEarningsResponse,
    BakerSummaryItem,
    DistributionOutcome,
    DistributionSummary,
)
from .service import PaymentDistributionService

router = APIRouter()
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "payment", "status": "running"}


# Admin retry path for distributions that failed during delivery
@router.post("/{order_id}/distribute", response_model=DistributionOutcome)
@limiter.limit(DISTRIBUTE_RATE_LIMIT)
async def distribute_payment(
    request: Request,
    order_id: int,
    admin: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentDistributionService.distribute(db, order_id)


@router.get("/bakers/{baker_id}/earnings", response_model=BakerEarningsResponse)
async def baker_earnings(
    baker_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    if actor.id != baker_id and actor.role != UserRole.ADMIN:
        raise Forbidden("You can only view your own earnings")
    return BakerEarningsResponse(
        baker_id=baker_id,
        total_earnings=await PaymentDistributionService.total_earnings(db, baker_id),
        breakdown=await PaymentDistributionService.earnings_breakdown(db, baker_id),
    )


@router.get("/summary", response_model=List[BakerSummaryItem])
async def all_bakers_summary(
    admin: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentDistributionService.all_bakers_summary(db)


@router.get("/{order_id}", response_model=DistributionSummary)
async def order_distribution(
    order_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    summary = await PaymentDistributionService.distribution_for_order(db, order_id)
    if actor.role != UserRole.ADMIN and actor.id not in {leg.baker_id for leg in summary.legs}:
        raise Forbidden("You were not paid for this order")
    return summary
