from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from relief_stock.core.database.base import Base
from relief_stock.core.database import get_db
from relief_stock.main import app
from relief_stock.modules.inventory.models import ChangeType, InventoryChangeReason

# In-memory SQLite; every test gets fresh tables
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

ACTOR_ID = "staff-001"

CATALOG_REASONS = [
    ("其他（請說明）", ChangeType.INCREASE, 1),
    ("過期", ChangeType.DECREASE, 1),
    ("損壞", ChangeType.DECREASE, 2),
    ("遺失", ChangeType.DECREASE, 3),
    ("其他（請說明）", ChangeType.DECREASE, 4),
]


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def reasons(db_session: AsyncSession) -> list[InventoryChangeReason]:
    """Seed the change reason catalog."""
    rows = [
        InventoryChangeReason(reason=reason, change_type=change_type.value, sort_order=order)
        for reason, change_type, order in CATALOG_REASONS
    ]
    db_session.add_all(rows)
    await db_session.commit()
    return rows


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Actor-Id": ACTOR_ID},
    ) as client:
        yield client

    app.dependency_overrides.clear()
