from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.dependencies import get_acting_user
from services.user_service.models import User
from shared.config.database import get_db
from shared.security import verify_internal_api_key

from .schemas import ChatParticipantResponse, ParticipantsResponse
from .synchronizer import ChatParticipantSynchronizer

router = APIRouter()
# Service-to-service only: re-running reconciliation after a failed side effect
internal_router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "chat", "status": "running"}


@router.get("/{order_id}/participants", response_model=ParticipantsResponse)
async def list_participants(
    order_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    participants = await ChatParticipantSynchronizer.list_participants(db, order_id, actor)
    return _response(order_id, participants)


@internal_router.post("/{order_id}/reconcile", response_model=ParticipantsResponse)
async def reconcile(order_id: int, db: AsyncSession = Depends(get_db)):
    participants = await ChatParticipantSynchronizer.reconcile(db, order_id)
    return _response(order_id, participants)


def _response(order_id: int, participants) -> ParticipantsResponse:
    return ParticipantsResponse(
        order_id=order_id,
        participants=[ChatParticipantResponse.model_validate(p) for p in participants],
    )
