"""Baker applications: customers join a main baker's team, junior bakers apply for promotion."""

import pytest

from services.team_service.models import ApplicationStatus, BakerApplication
from services.team_service.registry import BakerTeamRegistry
from services.team_service.service import ApplicationService
from services.user_service.models import User, UserRole
from shared.exceptions import Forbidden, InvalidRequest, NotFound


async def _reload(db, *objects):
    for obj in objects:
        await db.refresh(obj)


class TestSubmitApplication:
    async def test_customer_applies_to_join_a_team(self, db, bakery):
        application = await ApplicationService.submit_application(
            db, bakery["customer"], UserRole.JUNIOR_BAKER, "I love sourdough", bakery["main_baker"].id
        )

        assert application.status == ApplicationStatus.PENDING.value
        assert application.current_role == UserRole.CUSTOMER
        assert application.main_baker_id == bakery["main_baker"].id

    async def test_junior_application_must_name_a_main_baker(self, db, bakery):
        with pytest.raises(InvalidRequest):
            await ApplicationService.submit_application(
                db, bakery["customer"], UserRole.JUNIOR_BAKER, "Please", None
            )

    async def test_customer_cannot_skip_to_main_baker(self, db, bakery):
        with pytest.raises(InvalidRequest):
            await ApplicationService.submit_application(
                db, bakery["customer"], UserRole.MAIN_BAKER, "I am ready", None
            )

    async def test_named_main_baker_must_exist(self, db, bakery):
        with pytest.raises(NotFound):
            await ApplicationService.submit_application(
                db, bakery["customer"], UserRole.JUNIOR_BAKER, "Hi", bakery["junior_baker"].id
            )

    async def test_one_pending_application_at_a_time(self, db, bakery):
        customer, main = bakery["customer"], bakery["main_baker"]
        await ApplicationService.submit_application(db, customer, UserRole.JUNIOR_BAKER, "First", main.id)

        with pytest.raises(InvalidRequest):
            await ApplicationService.submit_application(db, customer, UserRole.JUNIOR_BAKER, "Again", main.id)

    async def test_promotion_application_drops_main_baker(self, db, bakery):
        application = await ApplicationService.submit_application(
            db, bakery["junior_baker"], UserRole.MAIN_BAKER, "Twenty cakes done", bakery["main_baker"].id
        )
        assert application.requested_role == UserRole.MAIN_BAKER
        assert application.main_baker_id is None


class TestReviewJuniorApplication:
    async def _submit(self, db, bakery):
        return await ApplicationService.submit_application(
            db, bakery["customer"], UserRole.JUNIOR_BAKER, "I love baking", bakery["main_baker"].id
        )

    async def test_approval_makes_applicant_a_team_member(self, db, bakery):
        application = await self._submit(db, bakery)
        customer_id = bakery["customer"].id

        reviewed = await ApplicationService.review_application(
            db, application.id, bakery["main_baker"], approve=True
        )

        assert reviewed.status == ApplicationStatus.APPROVED.value
        assert reviewed.reviewed_by == bakery["main_baker"].id
        applicant = await db.get(User, customer_id)
        assert applicant.role == UserRole.JUNIOR_BAKER
        membership = await BakerTeamRegistry.active_membership(db, customer_id)
        assert membership.main_baker_id == bakery["main_baker"].id

    async def test_rejection_changes_nothing_else(self, db, bakery):
        application = await self._submit(db, bakery)
        customer_id = bakery["customer"].id

        reviewed = await ApplicationService.review_application(
            db, application.id, bakery["main_baker"], approve=False
        )

        assert reviewed.status == ApplicationStatus.REJECTED.value
        assert (await db.get(User, customer_id)).role == UserRole.CUSTOMER
        assert await BakerTeamRegistry.active_membership(db, customer_id) is None

    async def test_other_main_baker_may_not_review(self, db, bakery, make_user):
        application = await self._submit(db, bakery)
        application_id = application.id
        stranger = await make_user(UserRole.MAIN_BAKER)

        with pytest.raises(Forbidden):
            await ApplicationService.review_application(db, application_id, stranger, approve=True)

        pending = await db.get(BakerApplication, application_id)
        assert pending.status == ApplicationStatus.PENDING.value

    async def test_admin_does_not_review_junior_applications(self, db, bakery):
        application = await self._submit(db, bakery)

        with pytest.raises(Forbidden):
            await ApplicationService.review_application(db, application.id, bakery["admin"], approve=True)

    async def test_cannot_review_twice(self, db, bakery):
        application = await self._submit(db, bakery)
        application_id = application.id
        await ApplicationService.review_application(db, application_id, bakery["main_baker"], approve=False)

        with pytest.raises(InvalidRequest):
            await ApplicationService.review_application(db, application_id, bakery["main_baker"], approve=True)

    async def test_unknown_application(self, db, bakery):
        with pytest.raises(NotFound):
            await ApplicationService.review_application(db, 999, bakery["main_baker"], approve=True)


class TestReviewPromotionApplication:
    async def test_admin_approval_promotes_and_leaves_team(self, db, bakery):
        junior_id = bakery["junior_baker"].id
        application = await ApplicationService.submit_application(
            db, bakery["junior_baker"], UserRole.MAIN_BAKER, "Ready to lead"
        )

        await ApplicationService.review_application(db, application.id, bakery["admin"], approve=True)

        assert (await db.get(User, junior_id)).role == UserRole.MAIN_BAKER
        assert await BakerTeamRegistry.active_membership(db, junior_id) is None

    async def test_main_baker_may_not_review_promotions(self, db, bakery):
        application = await ApplicationService.submit_application(
            db, bakery["junior_baker"], UserRole.MAIN_BAKER, "Ready to lead"
        )
        application_id = application.id
        main_baker = bakery["main_baker"]

        with pytest.raises(Forbidden):
            await ApplicationService.review_application(db, application_id, main_baker, approve=True)

        await _reload(db, main_baker)
        assert await BakerTeamRegistry.list_team(db, main_baker.id) != []


class TestPendingForReviewer:
    async def test_each_reviewer_sees_their_queue(self, db, bakery, make_user):
        newcomer = await make_user(UserRole.CUSTOMER)
        junior_app = await ApplicationService.submit_application(
            db, newcomer, UserRole.JUNIOR_BAKER, "Hello", bakery["main_baker"].id
        )
        promotion_app = await ApplicationService.submit_application(
            db, bakery["junior_baker"], UserRole.MAIN_BAKER, "Promote me"
        )

        main_queue = await ApplicationService.pending_for_reviewer(db, bakery["main_baker"])
        admin_queue = await ApplicationService.pending_for_reviewer(db, bakery["admin"])

        assert [a.id for a in main_queue] == [junior_app.id]
        assert [a.id for a in admin_queue] == [promotion_app.id]

    async def test_customers_have_no_queue(self, db, bakery):
        with pytest.raises(Forbidden):
            await ApplicationService.pending_for_reviewer(db, bakery["customer"])
