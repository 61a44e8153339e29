import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, computed_field

from .models import BakerType


class DistributionStatus(str, enum.Enum):
    """Every way a distribute() call can end without raising."""
    DISTRIBUTED = "distributed"
    NOT_DELIVERED = "not_delivered"
    NO_MAIN_BAKER = "no_main_baker"
    ALREADY_DISTRIBUTED = "already_distributed"


class EarningLeg(BaseModel):
    baker_id: int
    baker_type: BakerType
    amount: Decimal
    percentage: Decimal


class DistributionSummary(BaseModel):
    order_id: int
    total_amount: Decimal
    legs: List[EarningLeg]
    distributed_at: datetime

    @computed_field
    @property
    def junior_baker_amount(self) -> Optional[Decimal]:
        return self._amount_for(BakerType.JUNIOR_BAKER)

    @computed_field
    @property
    def main_baker_amount(self) -> Optional[Decimal]:
        return self._amount_for(BakerType.MAIN_BAKER)

    def _amount_for(self, baker_type: BakerType) -> Optional[Decimal]:
        for leg in self.legs:
            if leg.baker_type == baker_type:
                return leg.amount
        return None


class DistributionOutcome(BaseModel):
    order_id: int
    status: DistributionStatus
    summary: Optional[DistributionSummary] = None

    @property
    def applied(self) -> bool:
        return self.status == DistributionStatus.DISTRIBUTED


class EarningsBreakdownItem(BaseModel):
    order_id: int
    order_code: Optional[str]
    order_total: Optional[Decimal]
    baker_type: BakerType
    amount: Decimal
    percentage: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class BakerEarningsResponse(BaseModel):
    baker_id: int
    total_earnings: Decimal
    breakdown: List[EarningsBreakdownItem] = []


class BakerSummaryItem(BaseModel):
    baker_id: int
    baker_name: Optional[str]
    baker_type: BakerType
    total_earnings: Decimal
    order_count: int

    class Config:
        from_attributes = True
