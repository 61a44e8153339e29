from typing import Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.user_service.models import User, UserRole
from services.user_service.repository import UserRepository
from shared.config.database import atomic
from shared.exceptions import Forbidden, InvalidRequest, NotFound, PersistenceConflict

from .models import ApplicationStatus, BakerApplication
from .registry import BakerTeamRegistry
from .repository import BakerApplicationRepository

logger = structlog.get_logger(__name__)

# current role -> role it may apply for
ROLE_PROGRESSION = {
    UserRole.CUSTOMER: UserRole.JUNIOR_BAKER,
    UserRole.JUNIOR_BAKER: UserRole.MAIN_BAKER,
}


class ApplicationService:

    @staticmethod
    async def submit_application(
        db: AsyncSession,
        applicant: User,
        requested_role: UserRole,
        reason: str,
        main_baker_id: Optional[int] = None,
        timeout: float | None = None,
    ) -> BakerApplication:
        current_role = UserRole(applicant.role)
        if ROLE_PROGRESSION.get(current_role) != requested_role:
            raise InvalidRequest(
                f"A {current_role.value} cannot apply to become {UserRole(requested_role).value}"
            )
        if requested_role == UserRole.JUNIOR_BAKER and main_baker_id is None:
            raise InvalidRequest("A junior baker application must name a main baker")
        if requested_role == UserRole.MAIN_BAKER:
            main_baker_id = None

        async with atomic(db, timeout):
            if main_baker_id is not None:
                if await UserRepository.get_with_role(db, main_baker_id, UserRole.MAIN_BAKER) is None:
                    raise NotFound(f"Main baker {main_baker_id} not found")
            if await BakerApplicationRepository.list_pending(db, user_id=applicant.id):
                raise InvalidRequest("You already have an application awaiting review")

            application = await BakerApplicationRepository.create(
                db,
                BakerApplication(
                    user_id=applicant.id,
                    current_role=current_role,
                    requested_role=requested_role,
                    main_baker_id=main_baker_id,
                    reason=reason,
                    status=ApplicationStatus.PENDING.value,
                ),
            )

        logger.info(
            "baker_application_submitted",
            application_id=application.id,
            user_id=applicant.id,
            requested_role=UserRole(requested_role).value,
        )
        return application

    @staticmethod
    async def review_application(
        db: AsyncSession,
        application_id: int,
        reviewer: User,
        approve: bool,
        timeout: float | None = None,
    ) -> BakerApplication:
        """
        Approves or rejects a pending application.

        Junior baker applications go to the main baker they name, promotion
        applications to an admin. On approval the role change and team
        membership are written in the same transaction as the review.
        """
        try:
            async with atomic(db, timeout):
                application = await BakerApplicationRepository.get_for_update(db, application_id)
                if application is None:
                    raise NotFound(f"Application {application_id} not found")
                if not ApplicationService._can_review(application, reviewer):
                    raise Forbidden("You may not review this application")
                if application.status != ApplicationStatus.PENDING.value:
                    raise InvalidRequest(f"Application {application_id} was already {application.status}")

                if approve:
                    await ApplicationService._apply(db, application)
                application.status = (
                    ApplicationStatus.APPROVED.value if approve else ApplicationStatus.REJECTED.value
                )
                application.reviewed_by = reviewer.id
                await db.flush()
        except IntegrityError as e:
            logger.warning("application_review_conflict", application_id=application_id, error=str(e.orig))
            raise PersistenceConflict(f"Application {application_id} conflicted with a concurrent change") from e

        logger.info(
            "baker_application_reviewed",
            application_id=application_id,
            reviewer_id=reviewer.id,
            status=application.status,
        )
        return application

    @staticmethod
    async def _apply(db: AsyncSession, application: BakerApplication) -> None:
        if application.requested_role == UserRole.JUNIOR_BAKER:
            applicant = await UserRepository.get_by_id(db, application.user_id)
            if applicant is None:
                raise NotFound(f"User {application.user_id} not found")
            if applicant.role != UserRole.CUSTOMER:
                raise InvalidRequest(f"User {applicant.id} is no longer a customer")
            await UserRepository.set_role(db, applicant, UserRole.JUNIOR_BAKER)
            await BakerTeamRegistry.apply_assignment(db, application.main_baker_id, applicant.id)
        else:
            await BakerTeamRegistry.apply_promotion(db, application.user_id)

    @staticmethod
    def _can_review(application: BakerApplication, reviewer: User) -> bool:
        if application.requested_role == UserRole.JUNIOR_BAKER:
            return reviewer.role == UserRole.MAIN_BAKER and reviewer.id == application.main_baker_id
        return reviewer.role == UserRole.ADMIN

    @staticmethod
    async def pending_for_reviewer(db: AsyncSession, reviewer: User) -> Sequence[BakerApplication]:
        if reviewer.role == UserRole.ADMIN:
            return await BakerApplicationRepository.list_pending(db, requested_role=UserRole.MAIN_BAKER)
        if reviewer.role == UserRole.MAIN_BAKER:
            return await BakerApplicationRepository.list_pending(
                db, requested_role=UserRole.JUNIOR_BAKER, main_baker_id=reviewer.id
            )
        raise Forbidden("Only main bakers and admins review applications")
