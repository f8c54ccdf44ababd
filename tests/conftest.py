"""
Test configuration and fixtures

Every test gets its own on-disk SQLite database so that concurrent sessions
really run on separate connections.
"""

import os

# Settings are read at import time, so the environment comes first
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./memberly_test_default.db"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-1234567890"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-that-is-long-enough-12345"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["PROMETHEUS_ENABLED"] = "false"

from decimal import Decimal
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import settings
from app.core.database import Base
from app.core.plans import load_plan_catalog
from app.models.event import Event
from app.models.plan import Plan, PlanType
from app.models.user import User, UserRole
from app.services.event_service import EventService
from app.services.membership_service import MembershipService
from app.services.notification_service import NotificationDispatcher
from app.services.payment_service import PaymentOrchestrator
from app.services.reconciliation_service import PaymentReconciler
from app.services.seat_service import SeatReservationService
from tests.helpers import FakePaymentGateway


@pytest_asyncio.fixture(scope="function")
async def test_db(tmp_path):
    """Create async database engine for tests"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'memberly.db'}",
        echo=False,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(test_db):
    return async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest.fixture
def notifier(session_maker):
    return NotificationDispatcher(session_maker)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def catalog():
    return load_plan_catalog(settings)


@pytest.fixture
def seat_service(notifier):
    return SeatReservationService(hold_minutes=10, notifier=notifier)


@pytest.fixture
def membership_service(notifier):
    return MembershipService(term_days=365, timezone_name="Europe/London", notifier=notifier)


@pytest.fixture
def orchestrator(gateway, catalog, membership_service):
    return PaymentOrchestrator(gateway=gateway, catalog=catalog, membership_service=membership_service)


@pytest.fixture
def reconciler(gateway, membership_service, notifier):
    return PaymentReconciler(gateway=gateway, membership_service=membership_service, notifier=notifier)


async def _create_user(session: AsyncSession, role: UserRole = UserRole.USER, **fields) -> User:
    user = User(
        email=f"user_{uuid4().hex[:8]}@example.com",
        full_name=fields.pop("full_name", "Test User"),
        role=role,
        is_active=True,
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session) -> User:
    return await _create_user(db_session)


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    return await _create_user(db_session, full_name="Other User")


@pytest_asyncio.fixture
async def test_admin(db_session) -> User:
    return await _create_user(db_session, role=UserRole.ADMIN, full_name="Admin User")


@pytest_asyncio.fixture
async def vip_plan(db_session, catalog) -> Plan:
    config = catalog.get(PlanType.VIP_MEMBER)
    plan = Plan(
        name=config.name,
        description=config.description,
        features=list(config.features),
        plan_type=config.plan_type,
        price=Decimal("895.28"),
        currency="GBP",
        stripe_product_id=config.stripe_product_id,
        stripe_price_id=config.stripe_price_id,
        is_active=True,
    )
    db_session.add(plan)
    await db_session.commit()
    await db_session.refresh(plan)
    return plan


@pytest_asyncio.fixture
async def test_event(db_session) -> Event:
    return await EventService.create_event(
        db_session,
        title=f"Test Gala {uuid4().hex[:6]}",
        seats=[("A1", Decimal("100.00")), ("A2", Decimal("100.00")), ("B1", Decimal("75.50"))],
        venue_name="Test Hall",
        city="London",
        country="GB",
    )


@pytest_asyncio.fixture
async def client(session_maker, gateway, notifier):
    """Create test client with dependency overrides"""
    from app.main import app
    from app.api.deps import get_notifier, get_payment_gateway
    from app.core.database import get_session

    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
