import itertools
import os

# Must be set before any service module reads its configuration
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("CHAT_MESSAGES_URL", "http://chat.test/messages")

from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shared.config.database import Base
from services.chat_service import models as chat_models  # noqa: F401
from services.order_service.models import Order, OrderStatus
from services.payment_service import models as payment_models  # noqa: F401
from services.team_service.models import BakerTeam
from services.user_service.models import User, UserRole


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def file_engine(tmp_path):
    """
    File-backed database that several connections share at once.

    Every transaction opens with BEGIN IMMEDIATE, so a second writer waits for
    the first to commit the way a row lock makes it wait on Postgres.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bakery.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessions(file_engine):
    """Opens independent sessions on the shared file database, one per racing caller."""
    return async_sessionmaker(file_engine, expire_on_commit=False)


@pytest.fixture
def seed(sessions):
    async def _seed(*rows):
        async with sessions() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make(role=UserRole.CUSTOMER, full_name=None):
        n = next(counter)
        user = User(
            email=f"{role.value}{n}@example.com",
            full_name=full_name or f"{role.value.replace('_', ' ').title()} {n}",
            role=role,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_order(db):
    counter = itertools.count(100001)

    async def _make(customer, main_baker=None, junior_baker=None, status=OrderStatus.PENDING, total="100.00"):
        order = Order(
            order_code=f"BB-ORD-{next(counter)}",
            customer_id=customer.id,
            main_baker_id=main_baker.id if main_baker else None,
            junior_baker_id=junior_baker.id if junior_baker else None,
            status=status,
            total_amount=Decimal(total),
        )
        db.add(order)
        await db.commit()
        return order

    return _make


@pytest.fixture
def add_to_team(db):
    async def _add(main_baker, junior_baker):
        membership = BakerTeam(main_baker_id=main_baker.id, junior_baker_id=junior_baker.id, is_active=True)
        db.add(membership)
        await db.commit()
        return membership

    return _add


@pytest.fixture
async def bakery(make_user, add_to_team):
    """A customer, an admin, and a main baker with one junior baker on the team."""
    customer = await make_user(UserRole.CUSTOMER, "Carla Customer")
    main_baker = await make_user(UserRole.MAIN_BAKER, "Mara Main")
    junior_baker = await make_user(UserRole.JUNIOR_BAKER, "Jules Junior")
    admin = await make_user(UserRole.ADMIN, "Ada Admin")
    await add_to_team(main_baker, junior_baker)
    return {
        "customer": customer,
        "main_baker": main_baker,
        "junior_baker": junior_baker,
        "admin": admin,
    }


@pytest.fixture(autouse=True)
def notifications(monkeypatch):
    """Captures assignment notifications instead of calling the chat message log."""
    sent = []

    async def fake_post(order_id, recipient_id, message, client=None):
        sent.append({"order_id": order_id, "recipient_id": recipient_id, "message": message})
        return True

    monkeypatch.setattr("services.assignment_service.service.post_system_message", fake_post)
    return sent
