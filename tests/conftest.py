"""
Pytest configuration and fixtures for Brew Haven tests.

Each test gets its own SQLite file database (aiosqlite) with the full schema
and a small seeded menu.
"""
import os
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, AsyncMock

import pytest

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from brewhaven.core.database import Base, get_db  # noqa: E402
from brewhaven.core.permissions import Principal  # noqa: E402
from brewhaven.core.security import create_access_token  # noqa: E402
from brewhaven.models import Item, ItemOption, User, UserRoleName  # noqa: E402


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock async database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'brewhaven_test.db'}")
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(session_factory) -> SimpleNamespace:
    """
    Users and menu. Returned as plain ids so tests never touch ORM state
    belonging to another session.

    Menu:
        Latte      4.00  (Oat Milk +0.50, Extra Shot +0.75)
        Espresso   2.50  (Small -0.25)
        Pumpkin    5.00  unavailable
    """
    async with session_factory() as session:
        admin = User(email="admin@brewhaven.test", first_name="Ada", role=UserRoleName.ADMIN)
        staff = User(email="barista@brewhaven.test", first_name="Sam", role=UserRoleName.STAFF)
        alice = User(email="alice@brewhaven.test", first_name="Alice", role=UserRoleName.USER)
        bob = User(email="bob@brewhaven.test", first_name="Bob", role=UserRoleName.USER)
        inactive = User(email="gone@brewhaven.test", role=UserRoleName.USER, is_active=False)

        latte = Item(name="Latte", price=Decimal("4.00"), is_available=True, preparation_time=4)
        espresso = Item(name="Espresso", price=Decimal("2.50"), is_available=True, preparation_time=2)
        pumpkin = Item(name="Pumpkin Spice Latte", price=Decimal("5.00"), is_available=False, preparation_time=5)

        session.add_all([admin, staff, alice, bob, inactive, latte, espresso, pumpkin])
        await session.flush()

        oat = ItemOption(item_id=latte.id, name="Oat Milk", price_modifier=Decimal("0.50"))
        shot = ItemOption(item_id=latte.id, name="Extra Shot", price_modifier=Decimal("0.75"))
        small = ItemOption(item_id=espresso.id, name="Small", price_modifier=Decimal("-0.25"))
        session.add_all([oat, shot, small])
        await session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            staff_id=staff.id,
            alice_id=alice.id,
            bob_id=bob.id,
            inactive_id=inactive.id,
            latte_id=latte.id,
            espresso_id=espresso.id,
            pumpkin_id=pumpkin.id,
            oat_id=oat.id,
            shot_id=shot.id,
            small_id=small.id,
        )


@pytest.fixture
def admin(seed) -> Principal:
    return Principal(id=seed.admin_id, role=UserRoleName.ADMIN)


@pytest.fixture
def staff(seed) -> Principal:
    return Principal(id=seed.staff_id, role=UserRoleName.STAFF)


@pytest.fixture
def alice(seed) -> Principal:
    return Principal(id=seed.alice_id, role=UserRoleName.USER)


@pytest.fixture
def bob(seed) -> Principal:
    return Principal(id=seed.bob_id, role=UserRoleName.USER)


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
async def client(session_factory, seed):
    """HTTP client against the app, with get_db pointed at the test database."""
    from brewhaven.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Build Authorization headers for a user id."""
    return auth_headers
