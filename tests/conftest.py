"""
Test configuration and fixtures for SmartFarm backend tests.
"""
import os

# Must be set before the application settings are first imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from typing import AsyncGenerator
from decimal import Decimal
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from smartfarm.core.database import Base, get_db, create_engine_for
from smartfarm.core.persistence import Persistence
from smartfarm.core.security import create_user_token, get_password_hash
from main import app


# ============================================================
# Database Fixtures
# ============================================================

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "FarmPassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database for each test"""
    engine = create_engine_for(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session_factory(test_engine):
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


@pytest.fixture
def persistence(db_session) -> Persistence:
    return Persistence(db_session)


@pytest.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================
# User Fixtures
# ============================================================

async def _create_user(db_session, email, user_type, name="Test User", **fields):
    from smartfarm.modules.users.models import User, UserType

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        user_type=UserType(user_type),
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def farmer(db_session):
    """Create a farmer who borrows and sells produce"""
    return await _create_user(
        db_session,
        "farmer@example.com",
        "farmer",
        name="Amina Farmer",
        phone="+254700000001",
        farm_name="Green Acres",
        farm_location="Nakuru",
        crops_grown="maize, beans"
    )


@pytest.fixture
async def other_farmer(db_session):
    return await _create_user(
        db_session,
        "neighbour@example.com",
        "farmer",
        name="Joseph Neighbour",
        farm_location="Eldoret",
        crops_grown="wheat"
    )


@pytest.fixture
async def buyer(db_session):
    return await _create_user(db_session, "buyer@example.com", "buyer", name="Grace Buyer")


@pytest.fixture
async def admin(db_session):
    return await _create_user(db_session, "admin@example.com", "admin", name="Loan Officer")


def _auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def farmer_headers(farmer):
    return _auth_headers(farmer)


@pytest.fixture
def other_farmer_headers(other_farmer):
    return _auth_headers(other_farmer)


@pytest.fixture
def buyer_headers(buyer):
    return _auth_headers(buyer)


@pytest.fixture
def admin_headers(admin):
    return _auth_headers(admin)


# ============================================================
# Loan Fixtures
# ============================================================

@pytest.fixture
def ledger(persistence):
    from smartfarm.modules.loans.services import LoanLedger
    return LoanLedger(persistence)


@pytest.fixture
async def pending_loan(ledger, farmer):
    """10,000 seasonal loan over 12 months, awaiting a decision"""
    from smartfarm.modules.loans.models import LoanType

    result = await ledger.apply_for_loan(
        user_id=farmer.id,
        amount=Decimal("10000.00"),
        duration_months=12,
        loan_type=LoanType.SEASONAL,
        crop_season="Long rains 2026",
        expected_harvest_date=date(2026, 8, 15),
        purpose="Seed and fertilizer"
    )
    return result["loan_id"]


@pytest.fixture
async def approved_loan(ledger, admin, pending_loan):
    await ledger.approve_loan(admin, pending_loan)
    return pending_loan


@pytest.fixture
async def interest_free_loan(ledger, admin, farmer):
    """Approved 1,200 loan whose total payment is exactly 1,200.00"""
    from smartfarm.modules.loans.models import Loan, LoanStatus, LoanType

    loan = Loan(
        user_id=farmer.id,
        amount=Decimal("1200.00"),
        interest_rate=Decimal("0"),
        duration_months=12,
        loan_type=LoanType.EMERGENCY,
        status=LoanStatus.APPROVED,
        crop_season="Short rains 2026",
        expected_harvest_date=date(2026, 12, 1),
        monthly_payment=Decimal("100.00"),
        total_payment=Decimal("1200.00"),
        amount_paid=Decimal("0"),
        approved_by=admin.id
    )
    ledger.persistence.session.add(loan)
    await ledger.persistence.session.commit()
    return loan.id


# ============================================================
# Marketplace Fixtures
# ============================================================

@pytest.fixture
async def maize_listing(db_session, farmer):
    from smartfarm.modules.marketplace.models import MarketplaceProduct, ProductStatus

    product = MarketplaceProduct(
        farmer_id=farmer.id,
        product_name="White maize",
        description="Dry, graded maize",
        crop_type="maize",
        quantity=Decimal("500.00"),
        unit="kg",
        price_per_unit=Decimal("0.45"),
        location="Nakuru",
        status=ProductStatus.AVAILABLE
    )
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product
