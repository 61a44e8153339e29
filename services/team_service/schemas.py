from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from services.user_service.models import UserRole


class ApplicationCreate(BaseModel):
    requested_role: UserRole
    reason: str = Field(min_length=1, max_length=2000)
    main_baker_id: Optional[int] = None


class ApplicationReview(BaseModel):
    approve: bool


class ApplicationResponse(BaseModel):
    id: int
    user_id: int
    current_role: UserRole
    requested_role: UserRole
    main_baker_id: Optional[int]
    reason: str
    status: str
    reviewed_by: Optional[int]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class TeamMemberResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole

    class Config:
        from_attributes = True


class TeamResponse(BaseModel):
    main_baker_id: int
    members: list[TeamMemberResponse]
