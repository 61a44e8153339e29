"""HTTP surface: routers, auth dependencies and domain error mapping."""

from decimal import Decimal

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from services.assignment_service.router import router as assignment_router
from services.chat_service.router import internal_router as chat_internal_router
from services.chat_service.router import router as chat_router
from services.order_service.models import OrderStatus
from services.order_service.router import public_router as order_public_router
from services.order_service.router import router as order_router
from services.payment_service.router import router as payment_router
from services.team_service.router import router as team_router
from services.user_service.models import UserRole
from shared.config.database import get_db
from shared.exception_handler import setup_exception_handlers
from shared.security import INTERNAL_API_HEADERS, create_access_token, limiter


@pytest.fixture
def app(db):
    app = FastAPI()
    app.include_router(order_public_router, prefix="/orders")
    app.include_router(order_router, prefix="/orders")
    app.include_router(assignment_router, prefix="/assignments")
    app.include_router(team_router, prefix="/teams")
    app.include_router(chat_internal_router, prefix="/chats")
    app.include_router(chat_router, prefix="/chats")
    app.include_router(payment_router, prefix="/payments")
    setup_exception_handlers(app)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def auth(bakery):
    """Authorization headers per bakery member, minted up front."""
    return {
        name: {"Authorization": f"Bearer {create_access_token(user.id)}"}
        for name, user in bakery.items()
    }


@pytest.fixture
def ids(bakery):
    return {name: user.id for name, user in bakery.items()}


class TestAuthentication:
    async def test_missing_token(self, client):
        response = await client.get("/orders/")
        assert response.status_code == 401

    async def test_token_for_unknown_user(self, client):
        headers = {"Authorization": f"Bearer {create_access_token(999)}"}
        response = await client.get("/orders/", headers=headers)
        assert response.status_code == 401

    async def test_wrong_role(self, client, auth):
        response = await client.post("/orders/", json={"total_amount": "10.00"}, headers=auth["main_baker"])
        assert response.status_code == 403


class TestOrderEndpoints:
    async def test_checkout_and_track(self, client, auth, ids):
        response = await client.post(
            "/orders/",
            json={"total_amount": "24.99", "main_baker_id": ids["main_baker"]},
            headers=auth["customer"],
        )
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "pending"
        assert Decimal(order["total_amount"]) == Decimal("24.99")

        tracked = await client.get(f"/orders/track/{order['order_code']}")
        assert tracked.status_code == 200
        assert tracked.json()["status"] == "pending"

        queue = await client.get("/orders/needing-assignment", headers=auth["main_baker"])
        assert [o["id"] for o in queue.json()] == [order["id"]]

    async def test_unknown_order_maps_to_404(self, client, auth):
        response = await client.get("/orders/321", headers=auth["admin"])
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    async def test_invalid_transition_maps_to_409(self, client, auth, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"])
        response = await client.patch(
            f"/orders/{order.id}/status", json={"status": "ready"}, headers=auth["main_baker"]
        )
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidTransition"

    async def test_deliver_reports_distribution(self, client, auth, bakery, make_order):
        order = await make_order(
            bakery["customer"], bakery["main_baker"], bakery["junior_baker"], status=OrderStatus.READY
        )
        order_id = order.id

        response = await client.patch(f"/orders/{order_id}/deliver", headers=auth["customer"])

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "delivered"
        assert body["distribution_status"] == "distributed"


class TestAssignmentEndpoint:
    async def test_assign_to_junior(self, client, auth, ids, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"])

        response = await client.post(
            f"/assignments/{order.id}",
            json={"junior_baker_id": ids["junior_baker"], "deadline": "2030-05-01T10:00:00Z"},
            headers=auth["main_baker"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "junior_baker"
        assert body["participants_synced"] is True

        participants = await client.get(f"/chats/{order.id}/participants", headers=auth["junior_baker"])
        assert {p["user_id"] for p in participants.json()["participants"]} == {
            ids["customer"],
            ids["main_baker"],
            ids["junior_baker"],
        }

    async def test_take_self(self, client, auth, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"])

        response = await client.post(f"/assignments/{order.id}", json={"take_self": True}, headers=auth["main_baker"])

        assert response.status_code == 200
        assert response.json()["status"] == "processing"

    async def test_requires_exactly_one_mode(self, client, auth, ids, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"])

        both = await client.post(
            f"/assignments/{order.id}",
            json={"junior_baker_id": ids["junior_baker"], "take_self": True},
            headers=auth["main_baker"],
        )
        neither = await client.post(f"/assignments/{order.id}", json={}, headers=auth["main_baker"])

        assert both.status_code == 422
        assert neither.status_code == 422

    async def test_someone_elses_order_maps_to_403(self, client, auth, make_user, make_order, bakery):
        other_main = await make_user(UserRole.MAIN_BAKER)
        order = await make_order(bakery["customer"], other_main)

        response = await client.post(f"/assignments/{order.id}", json={"take_self": True}, headers=auth["main_baker"])

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"


class TestTeamEndpoints:
    async def test_application_flow(self, client, make_user, ids, auth):
        applicant = await make_user(UserRole.CUSTOMER)
        applicant_id = applicant.id
        applicant_headers = {"Authorization": f"Bearer {create_access_token(applicant_id)}"}

        submitted = await client.post(
            "/teams/applications",
            json={"requested_role": "junior_baker", "reason": "I bake daily", "main_baker_id": ids["main_baker"]},
            headers=applicant_headers,
        )
        assert submitted.status_code == 201
        application_id = submitted.json()["id"]

        queue = await client.get("/teams/applications", headers=auth["main_baker"])
        assert [a["id"] for a in queue.json()] == [application_id]

        reviewed = await client.patch(
            f"/teams/applications/{application_id}", json={"approve": True}, headers=auth["main_baker"]
        )
        assert reviewed.status_code == 200
        assert reviewed.json()["status"] == "approved"

        team = await client.get(f"/teams/{ids['main_baker']}/members", headers=auth["main_baker"])
        assert {m["id"] for m in team.json()["members"]} == {ids["junior_baker"], applicant_id}

    async def test_invalid_progression_maps_to_400(self, client, auth):
        response = await client.post(
            "/teams/applications",
            json={"requested_role": "admin", "reason": "please"},
            headers=auth["customer"],
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"

    async def test_other_teams_are_private(self, client, auth, ids):
        response = await client.get(f"/teams/{ids['main_baker']}/members", headers=auth["junior_baker"])
        assert response.status_code == 403


class TestChatEndpoints:
    async def test_reconcile_requires_internal_key(self, client, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"])

        denied = await client.post(f"/chats/{order.id}/reconcile")
        allowed = await client.post(f"/chats/{order.id}/reconcile", headers=INTERNAL_API_HEADERS)

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert len(allowed.json()["participants"]) == 2


class TestPaymentEndpoints:
    async def test_admin_retry_is_idempotent(self, client, auth, ids, bakery, make_order):
        order = await make_order(
            bakery["customer"], bakery["main_baker"], bakery["junior_baker"], status=OrderStatus.DELIVERED
        )
        order_id = order.id

        first = await client.post(f"/payments/{order_id}/distribute", headers=auth["admin"])
        second = await client.post(f"/payments/{order_id}/distribute", headers=auth["admin"])

        assert first.json()["status"] == "distributed"
        assert Decimal(first.json()["summary"]["junior_baker_amount"]) == Decimal("70.00")
        assert second.json()["status"] == "already_distributed"

        earnings = await client.get(f"/payments/bakers/{ids['junior_baker']}/earnings", headers=auth["junior_baker"])
        assert earnings.status_code == 200
        assert Decimal(earnings.json()["total_earnings"]) == Decimal("70.00")

        recorded = await client.get(f"/payments/{order_id}", headers=auth["main_baker"])
        assert recorded.status_code == 200
        assert Decimal(recorded.json()["main_baker_amount"]) == Decimal("30.00")

    async def test_distribute_is_admin_only(self, client, auth, bakery, make_order):
        order = await make_order(bakery["customer"], bakery["main_baker"], status=OrderStatus.DELIVERED)
        response = await client.post(f"/payments/{order.id}/distribute", headers=auth["main_baker"])
        assert response.status_code == 403

    async def test_cannot_read_other_bakers_earnings(self, client, auth, ids):
        response = await client.get(f"/payments/bakers/{ids['main_baker']}/earnings", headers=auth["junior_baker"])
        assert response.status_code == 403

    async def test_summary(self, client, auth):
        response = await client.get("/payments/summary", headers=auth["admin"])
        assert response.status_code == 200
        assert response.json() == []
