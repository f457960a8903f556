"""Service test fixtures — async DB, stores, fake ledger, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db_manager dependency overridden to use the test engine
    - db_manager module global patched for the readiness probe

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for store and
      route tests (PostgreSQL-specific features not exercised here)
    - FakeLedger stands in for both contract handles: no network in tests
"""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from httpx import ASGITransport, AsyncClient

import craftsync.models  # noqa: F401
from craftsync.db.base import Base
from craftsync.infrastructure.database import DatabaseSessionManager, get_db_manager
import craftsync.infrastructure.database as db_module
from craftsync.main import app
from craftsync.services.recipe_store import IngredientStore, RecipeStore

from tests.services.fake_ledger import FakeLedger, TOKEN_ADDRESS, WORKBENCH_ADDRESS


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def db(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
def recipe_store(db):
    return RecipeStore(db)


@pytest.fixture
def ingredient_store(db):
    return IngredientStore(db)


@pytest.fixture
def token_ledger():
    ledger = FakeLedger(TOKEN_ADDRESS)
    ledger.names.update({5: "Iron Ore", 6: "Coal", 100: "Steel Ingot"})
    ledger.prices.update({5: 10, 6: 5, 100: 50})
    return ledger


@pytest.fixture
def workbench_ledger():
    return FakeLedger(WORKBENCH_ADDRESS)


@pytest.fixture
async def client(db):
    """FastAPI test client with the session manager overridden."""
    app.dependency_overrides[get_db_manager] = lambda: db

    original_manager = db_module.db_manager
    db_module.db_manager = db
    app.state.chain = None
    app.state.synchronizer = None

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
