from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.dependencies import require_roles
from services.user_service.models import User, UserRole
from shared.config.database import get_db

from .schemas import AssignmentResult, AssignOrderRequest
from .service import AssignmentService

router = APIRouter()
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "assignment", "status": "running"}


@router.post("/{order_id}", response_model=AssignmentResult)
async def assign_order(
    order_id: int,
    body: AssignOrderRequest,
    main_baker: User = Depends(require_roles(UserRole.MAIN_BAKER)),
    db: AsyncSession = Depends(get_db),
):
    if body.take_self:
        return await AssignmentService.take_self(db, order_id, main_baker.id, body.deadline)
    return await AssignmentService.assign_to_junior(
        db, order_id, body.junior_baker_id, main_baker.id, body.deadline
    )
