"""Pytest fixtures for anonsync tests."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from anonsync.config import Settings
from anonsync.database import build_tables, init_db
from anonsync.schemas import Address, Customer
from anonsync.services import CheckpointStore, CustomerCollection, LockCoordinator


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Test settings backed by a file SQLite database (no PostgreSQL features tested)."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'anonsync.db'}",
        source_collection="customers",
        target_collection="customers_anonymized",
        checkpoint_path=str(tmp_path / ".pointer"),
        lock_path=str(tmp_path / ".lock"),
        buffer_size=1000,
    )


@pytest_asyncio.fixture
async def async_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for testing."""
    engine = create_async_engine(test_settings.database_url, echo=False)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def tables(async_engine: AsyncEngine, test_settings: Settings):
    """Create the source and target tables."""
    source_table, target_table = build_tables(test_settings)
    await init_db(async_engine, source_table, target_table)
    return source_table, target_table


@pytest.fixture
def source(async_engine: AsyncEngine, tables) -> CustomerCollection:
    return CustomerCollection(async_engine, tables[0])


@pytest.fixture
def target(async_engine: AsyncEngine, tables) -> CustomerCollection:
    return CustomerCollection(async_engine, tables[1])


@pytest.fixture
def lock(test_settings: Settings) -> LockCoordinator:
    return LockCoordinator(test_settings.lock_path)


@pytest.fixture
def checkpoint(test_settings: Settings) -> CheckpointStore:
    return CheckpointStore(test_settings.checkpoint_path)


@pytest.fixture
def sample_datetime() -> datetime:
    """Sample datetime for testing."""
    return datetime(2024, 1, 18, 10, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_customer(sample_datetime: datetime) -> Callable[..., Customer]:
    """Factory for source customers; keyword arguments override top-level fields."""

    def _make(
        customer_id: str = "c0000000000000000000000000000001",
        created_at: datetime | None = None,
        **overrides,
    ) -> Customer:
        fields = {
            "id": customer_id,
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane.doe@example.com",
            "address": Address(
                line1="1 Main Street",
                line2="Apt 2",
                postcode="90210",
                city="Beverly Hills",
                state="California",
                country="US",
            ),
            "created_at": created_at or sample_datetime,
        }
        fields.update(overrides)
        return Customer(**fields)

    return _make
