"""Command line entry points for the anonymizing replicator."""

import argparse
import asyncio
import logging
from datetime import timedelta

from sqlalchemy import MetaData, Table
from sqlalchemy.ext.asyncio import AsyncEngine

from anonsync.config import Settings, get_settings
from anonsync.database import build_tables, check_db_ready, create_engine, init_db
from anonsync.models import customer_table
from anonsync.services import (
    CheckpointStore,
    CustomerCollection,
    FullReindexer,
    LockCoordinator,
    LockHeldError,
    Pursuer,
    Updater,
)
from anonsync.tasks.scheduler import setup_scheduler, shutdown_scheduler

logger = logging.getLogger(__name__)

FULL_REINDEX_FLAG = "--full-reindex"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="anonsync",
        description="Replicate customers into an anonymized target collection.",
    )
    parser.add_argument(
        FULL_REINDEX_FLAG,
        dest="full_reindex",
        action="store_true",
        help="Reconcile the whole target, catch up with the source, store the pointer and exit.",
    )
    return parser.parse_args(argv)


async def prepare_db(engine: AsyncEngine, settings: Settings, *tables: Table) -> None:
    """Create missing collection tables, or verify they exist when creation is disabled."""
    if settings.create_tables:
        await init_db(engine, *tables)
    else:
        await check_db_ready(engine, *tables)


async def run_full_reindex(settings: Settings) -> int:
    """Run the full reindex under the lock. Exits cleanly when another reindex holds it."""
    lock = LockCoordinator(settings.lock_path)
    if lock.is_locked():
        logger.info("Full reindex already in progress, nothing to do")
        return 0

    engine = create_engine(settings)
    source_table, target_table = build_tables(settings)
    try:
        with lock.hold():
            await prepare_db(engine, settings, source_table, target_table)
            reindexer = FullReindexer(
                CustomerCollection(engine, source_table),
                CustomerCollection(engine, target_table),
                CheckpointStore(settings.checkpoint_path),
                margin=timedelta(seconds=settings.initial_pointer_margin_seconds),
            )
            await reindexer.run()
    except LockHeldError:
        logger.info("Full reindex already in progress, nothing to do")
    finally:
        await engine.dispose()

    return 0


async def run_continuous(settings: Settings) -> None:
    """Run the Pursuer and the Updater until the process is terminated."""
    engine = create_engine(settings)
    source_table, target_table = build_tables(settings)
    try:
        await prepare_db(engine, settings, source_table, target_table)

        source = CustomerCollection(engine, source_table)
        target = CustomerCollection(engine, target_table)
        lock = LockCoordinator(settings.lock_path)

        pursuer = Pursuer(
            source,
            target,
            lock,
            CheckpointStore(settings.checkpoint_path),
            window=settings.buffer_size,
            margin=timedelta(seconds=settings.initial_pointer_margin_seconds),
        )
        updater = Updater(
            source,
            target,
            lock,
            backoff_seconds=settings.updater_backoff_ms / 1000,
        )

        setup_scheduler(settings, pursuer=pursuer)
        task = updater.start()
        await task
    finally:
        shutdown_scheduler()
        await engine.dispose()


async def run(settings: Settings, full_reindex: bool = False) -> int:
    """Select the run mode. Missing configuration means there is nothing to do."""
    if not settings.is_configured:
        logger.debug("Database url or collection names missing, exiting")
        return 0

    if full_reindex:
        return await run_full_reindex(settings)

    await run_continuous(settings)
    return 0


async def wait_forever() -> None:
    await asyncio.Event().wait()


async def run_generator(settings: Settings) -> int:
    """Insert fake customers into the source until the process is terminated."""
    if not settings.database_url or not settings.source_collection:
        logger.debug("Database url or source collection missing, exiting")
        return 0

    engine = create_engine(settings)
    source_table = customer_table(settings.source_collection, MetaData())
    try:
        await prepare_db(engine, settings, source_table)
        setup_scheduler(settings, generator_source=CustomerCollection(engine, source_table))
        await wait_forever()
    finally:
        shutdown_scheduler()
        await engine.dispose()

    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    return asyncio.run(run(settings, full_reindex=args.full_reindex))


def generator_main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    return asyncio.run(run_generator(settings))


if __name__ == "__main__":
    raise SystemExit(main())
