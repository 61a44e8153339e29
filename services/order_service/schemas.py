from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .models import OrderStatus

class OrderCreate(BaseModel):
    total_amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    main_baker_id: Optional[int] = None # storefront owner of the ordered products

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderResponse(BaseModel):
    id: int
    order_code: str
    customer_id: int
    main_baker_id: Optional[int]
    junior_baker_id: Optional[int]
    status: OrderStatus
    total_amount: Decimal
    deadline: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class OrderTrackingResponse(BaseModel):
    order_code: str
    status: OrderStatus
    deadline: Optional[datetime]
    updated_at: datetime

    class Config:
        from_attributes = True

class DeliveryResponse(BaseModel):
    order: OrderResponse
    # Outcome of the best-effort distribution; None when it failed and needs an admin retry
    distribution_status: Optional[str] = None
