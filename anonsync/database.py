"""Database setup with SQLAlchemy async."""

from sqlalchemy import MetaData, Table, inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from anonsync.config import Settings
from anonsync.models import customer_table


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured store."""
    options: dict = {"echo": settings.debug, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    return create_async_engine(settings.database_url, **options)


def build_tables(settings: Settings, metadata: MetaData | None = None) -> tuple[Table, Table]:
    """Build the (source, target) tables for the configured collection names."""
    metadata = metadata or MetaData()
    source = customer_table(settings.source_collection, metadata)
    target = customer_table(settings.target_collection, metadata)
    return source, target


async def init_db(engine: AsyncEngine, *tables: Table) -> None:
    """Create the given tables when they do not exist yet."""
    async with engine.begin() as conn:
        for table in tables:
            await conn.run_sync(table.create, checkfirst=True)


async def check_db_ready(engine: AsyncEngine, *tables: Table) -> None:
    """
    Verify database connectivity and expected schema.

    Checks that every collection table exists.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [table.name for table in tables if table.name not in existing]
        if missing:
            raise RuntimeError(
                f"Database schema is missing tables: {', '.join(missing)} "
                "(enable CREATE_TABLES or create them manually)."
            )
