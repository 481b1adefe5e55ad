import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")

import pytest
from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from delivery_backend.core.security import active_tokens, create_access_token, hash_password
from delivery_backend.database import Base, get_db
from delivery_backend.main import app
from delivery_backend.models import (
    DeliveryStatus,
    Order,
    PaymentStatus,
    User,
    UserRole,
    UserStatus,
)
from tests.fixtures.test_data import generate_order, generate_user

# Use in-memory SQLite for tests by default, unless TEST_DATABASE_URL is set
TEST_DB_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def test_engine():
    """Test database engine with a fresh schema."""
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DB_URL else {},
        poolclass=StaticPool if "sqlite" in TEST_DB_URL else None,
    )
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield engine
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Function-scoped DB session rolled back after each test."""
    connection = await test_engine.connect()
    transaction = await connection.begin()
    
    session_maker = async_sessionmaker(
        bind=connection,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    session = session_maker()
    
    yield session
    
    await session.close()
    await transaction.rollback()
    await connection.close()


@pytest.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with override for get_db."""
    async def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_tokens():
    """Tokens live in process memory; start every test signed out."""
    active_tokens.clear()
    yield
    active_tokens.clear()


@pytest.fixture
def auth():
    """Build bearer headers for a user."""
    def _headers(user: User) -> dict:
        token, _ = create_access_token(user.id)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_user(db_session):
    """Factory inserting a user directly, bypassing registration rules."""
    async def _make(role: UserRole = UserRole.CUSTOMER, status: UserStatus = UserStatus.ACTIVE, **overrides) -> User:
        data = generate_user(role=role.value)
        password = data.pop("password")
        data.pop("role")
        data.update(overrides)
        user = User(
            **data,
            role=role,
            status=status,
            password_hash=hash_password(password),
        )
        db_session.add(user)
        await db_session.commit()
        return user
    return _make


@pytest.fixture
async def customer(make_user) -> User:
    return await make_user(UserRole.CUSTOMER)


@pytest.fixture
async def other_customer(make_user) -> User:
    return await make_user(UserRole.CUSTOMER)


@pytest.fixture
async def driver(make_user) -> User:
    return await make_user(UserRole.DRIVER)


@pytest.fixture
async def other_driver(make_user) -> User:
    return await make_user(UserRole.DRIVER)


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN)


@pytest.fixture
def make_order(db_session):
    """Factory inserting an order in any state."""
    async def _make(
        customer: User,
        driver: User = None,
        delivery_status: DeliveryStatus = DeliveryStatus.PENDING,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
        created_at: datetime = None,
        **overrides,
    ) -> Order:
        data = generate_order(**overrides)
        data["price"] = Decimal(data["price"])
        order = Order(
            **data,
            customer_id=customer.id,
            driver_id=driver.id if driver else None,
            delivery_status=delivery_status,
            payment_status=payment_status,
        )
        if created_at is not None:
            order.created_at = created_at
        db_session.add(order)
        await db_session.commit()
        return order
    return _make
