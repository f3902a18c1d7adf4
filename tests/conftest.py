"""
Test configuration and fixtures for the investment plans backend tests.
"""
import pytest
from typing import AsyncGenerator
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from app.core.database import Base, get_db
from app.modules.investments.automation import (
    InvestmentCompletionScheduler, LocalSweepGuard, get_investment_scheduler
)
from app.modules.notifications.services import InvestmentMailer, get_mailer
from main import app


# ============================================================
# Database Fixtures
# ============================================================

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Create a fresh test database engine per test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for each test"""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================
# Notification / Scheduler Fixtures
# ============================================================

@pytest.fixture
def mailer():
    """Mailer whose sends are recorded instead of hitting SendGrid"""
    mock = AsyncMock(spec=InvestmentMailer)
    mock.investment_approved.return_value = True
    mock.investment_rejected.return_value = True
    mock.investment_completed.return_value = True
    mock.alert_admin.return_value = True
    return mock


@pytest.fixture
def scheduler(session_factory, mailer):
    return InvestmentCompletionScheduler(
        session_factory=session_factory,
        mailer=mailer,
        guard=LocalSweepGuard(),
        interval_seconds=60,
        initial_delay_seconds=0
    )


@pytest.fixture
async def client(db_session, mailer, scheduler) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database, mailer and scheduler overrides"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_investment_scheduler] = lambda: scheduler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================
# User Fixtures
# ============================================================

@pytest.fixture
async def test_user(db_session):
    """Create a test user with 1000 on deposit"""
    from app.modules.users.models import User

    user = User(
        email="investor@example.com",
        username="investor",
        full_name="Test Investor",
        deposit=1000.0,
        interest=0.0
    )

    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)

    return user


# ============================================================
# Plan Fixtures
# ============================================================

@pytest.fixture
async def test_plan(db_session):
    """Create a 10% plan with a 100 minimum over 30 days"""
    from app.modules.plans.models import Plan

    plan = Plan(
        name="Silver",
        description="Thirty day plan",
        roi=10.0,
        min_amount=100.0,
        duration="30 days",
        features=["Automatic payout"],
        is_active=True
    )

    db_session.add(plan)
    await db_session.commit()
    await db_session.refresh(plan)

    return plan


@pytest.fixture
def make_investment(db_session, test_user):
    """Factory for investment records with explicit dates"""
    from app.modules.transactions.models import Transaction, TransactionType, TransactionStatus

    async def _make(
        amount: float = 200.0,
        total_interest: float = 20.0,
        start_date: datetime = None,
        end_date: datetime = None,
        status: TransactionStatus = TransactionStatus.ACTIVE,
        user=None
    ):
        owner = user or test_user
        start_date = start_date or datetime.utcnow() - timedelta(days=1)
        end_date = end_date or start_date + timedelta(days=30)
        investment = Transaction(
            type=TransactionType.INVESTMENT,
            status=status,
            amount=amount,
            user_id=owner.id,
            user_email=owner.email,
            user_name=owner.username,
            plan_name="Silver",
            plan_duration="30 days",
            total_interest=total_interest,
            start_date=start_date,
            end_date=end_date,
            current_interest=0.0,
            created_at=start_date
        )
        db_session.add(investment)
        await db_session.commit()
        await db_session.refresh(investment)
        return investment

    return _make
