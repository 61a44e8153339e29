from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from services.order_service.models import OrderStatus


class AssignOrderRequest(BaseModel):
    """Either hand the order to a junior baker or take it yourself, never both."""
    junior_baker_id: Optional[int] = None
    take_self: bool = False
    deadline: Optional[datetime] = None

    @model_validator(mode="after")
    def exactly_one_mode(self):
        if self.take_self == (self.junior_baker_id is not None):
            raise ValueError("Provide either junior_baker_id or take_self=true")
        return self


class AssignmentResult(BaseModel):
    order_id: int
    order_code: str
    mode: str
    junior_baker_id: Optional[int]
    status: OrderStatus
    deadline: Optional[datetime]
    # Best-effort side effects that ran after the assignment was committed
    participants_synced: bool
    notified: bool
