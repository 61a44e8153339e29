from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.dependencies import get_acting_user
from services.user_service.models import User, UserRole
from shared.config.database import get_db
from shared.exceptions import Forbidden

from .registry import BakerTeamRegistry
from .schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationReview,
    TeamMemberResponse,
    TeamResponse,
)
from .service import ApplicationService

router = APIRouter()
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "team", "status": "running"}


@router.post("/applications", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    body: ApplicationCreate,
    applicant: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.submit_application(
        db, applicant, body.requested_role, body.reason, body.main_baker_id
    )


@router.get("/applications", response_model=List[ApplicationResponse])
async def pending_applications(
    reviewer: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.pending_for_reviewer(db, reviewer)


@router.patch("/applications/{application_id}", response_model=ApplicationResponse)
async def review_application(
    application_id: int,
    body: ApplicationReview,
    reviewer: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    return await ApplicationService.review_application(db, application_id, reviewer, body.approve)


@router.get("/{main_baker_id}/members", response_model=TeamResponse)
async def list_team(
    main_baker_id: int,
    actor: User = Depends(get_acting_user),
    db: AsyncSession = Depends(get_db),
):
    if actor.id != main_baker_id and actor.role != UserRole.ADMIN:
        raise Forbidden("You can only view your own team")
    members = await BakerTeamRegistry.list_team(db, main_baker_id)
    return TeamResponse(
        main_baker_id=main_baker_id,
        members=[TeamMemberResponse.model_validate(m) for m in members],
    )
