from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.dependencies import get_acting_user, require_roles
from services.user_service.models import User, UserRole
from shared.config.database import get_db

from .schemas import (
    DeliveryResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
    OrderTrackingResponse,
)
from .service import OrderService

router = APIRouter()
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "order", "status": "running"}


# Public tracking page: the order code is the only credential
@public_router.get("/track/{order_code}", response_model=OrderTrackingResponse)
async def track_order(order_code: str, db: AsyncSession = Depends(get_db)):
    return await OrderService.get_order_by_code(db, order_code)


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order: OrderCreate,
    customer: User = Depends(require_roles(UserRole.CUSTOMER)),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_order(db, customer, order)


@router.get("/", response_model=List[OrderResponse])
async def list_orders(actor: User = Depends(get_acting_user), db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db, actor)


@router.get("/needing-assignment", response_model=List[OrderResponse])
async def orders_needing_assignment(
    main_baker: User = Depends(require_roles(UserRole.MAIN_BAKER)),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.orders_needing_assignment(db, main_baker)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order(db, order_id, actor)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.update_status(db, order_id, body.status, actor)


@router.patch("/{order_id}/deliver", response_model=DeliveryResponse)
async def mark_delivered(
    order_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    order, outcome = await OrderService.mark_delivered(db, order_id, actor)
    return DeliveryResponse(
        order=OrderResponse.model_validate(order),
        distribution_status=outcome.status.value if outcome else None,
    )
